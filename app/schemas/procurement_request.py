from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class RequestCreate(BaseModel):
    title: str
    description: Optional[str] = None
    request_type: str = "RFP"


class RequestUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    request_type: Optional[str] = None


class RequestResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    request_type: str
    status: str
    requester_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
