from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Union
from datetime import datetime


class AwardInitiate(BaseModel):
    brfq_id: int = Field(alias="brfqId")
    supplier_ids: List[Union[str, int]] = Field(alias="supplierIds")
    justification: Optional[str] = None
    estimated_value: Optional[Any] = Field(default=None, alias="estimatedValue")
    split_award: bool = Field(default=False, alias="splitAward")
    winners: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class AwardApprove(BaseModel):
    approver: Optional[str] = None
    note: Optional[str] = None
    winners: List[Dict[str, Any]] = Field(default_factory=list)


class AwardWorkflowIn(BaseModel):
    rules: List[Dict[str, Any]] = Field(default_factory=list)
    notification_mapping: Dict[str, Any] = Field(default_factory=dict, alias="notificationMapping")

    model_config = ConfigDict(populate_by_name=True)


class AwardWinnerResponse(BaseModel):
    id: int
    supplier_id: str
    amount: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class AwardHistoryResponse(BaseModel):
    id: int
    action: str
    by_user: Optional[str] = None
    note: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AwardResponse(BaseModel):
    id: int
    brfq_id: int
    supplier_id: str
    justification: Optional[str] = None
    estimated_value: Optional[float] = None
    split_award: bool
    status: str
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    winners: List[AwardWinnerResponse] = []
    history: List[AwardHistoryResponse] = []

    model_config = ConfigDict(from_attributes=True)
