from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class PauseReasonCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=50)
    label: str = Field(..., min_length=1, max_length=255)
    active: bool = True


class PauseReasonUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=255)
    active: Optional[bool] = None


class PauseReasonResponse(BaseModel):
    id: int
    key: str
    label: str
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PauseRequest(BaseModel):
    performed_by: Optional[str] = Field(default=None, alias="requestedBy")
    reason_id: Optional[int] = Field(default=None, alias="reasonId")
    reason_text: Optional[str] = Field(default=None, alias="reasonText")
    notify_suppliers: bool = Field(default=True, alias="notifySuppliers")
    notify_internal: bool = Field(default=True, alias="notifyInternal")

    model_config = ConfigDict(populate_by_name=True)


class ResumeRequest(BaseModel):
    performed_by: Optional[str] = Field(default=None, alias="performedBy")
    notify_suppliers: bool = Field(default=True, alias="notifySuppliers")
    notify_internal: bool = Field(default=True, alias="notifyInternal")

    model_config = ConfigDict(populate_by_name=True)


class PauseActionResponse(BaseModel):
    id: int
    brfq_id: int
    action: str
    performed_by: Optional[str] = None
    reason_id: Optional[int] = None
    reason_text: Optional[str] = None
    notify_suppliers: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
