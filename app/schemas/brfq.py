from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class RequestItemResponse(BaseModel):
    id: int
    internal_part_no: Optional[str] = None
    manufacturer: Optional[str] = None
    mfg_part_no: Optional[str] = None
    description: Optional[str] = None
    uom: Optional[str] = None
    quantity: float

    model_config = ConfigDict(from_attributes=True)


class BRFQResponse(BaseModel):
    id: int
    rfq_id: str
    title: str
    status: str
    approval_status: Optional[str] = None
    published: bool
    publish_on_approval: bool
    currency: Optional[str] = None
    incoterms: Optional[str] = None
    carrier: Optional[str] = None
    notes_to_supplier: Optional[str] = None
    target_price: Optional[float] = None
    categories: Optional[List[Any]] = None
    close_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_note: Optional[str] = None
    items: List[RequestItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class BRFQDecision(BaseModel):
    note: Optional[str] = None
    approver: Optional[str] = None
    publish_override: Optional[bool] = Field(default=None, alias="publishOverride")

    model_config = ConfigDict(populate_by_name=True)


class ModificationCreate(BaseModel):
    requested_by: Optional[str] = Field(default=None, alias="requestedBy")
    requested_fields: List[Any] = Field(default_factory=list, alias="requestedFields")
    summary: Dict[str, Any] = Field(default_factory=dict)
    note: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class ModificationDecision(BaseModel):
    acted_by: str = Field(default="admin", alias="actedBy")
    note: str = ""
    notify_suppliers: bool = Field(default=True, alias="notifySuppliers")

    model_config = ConfigDict(populate_by_name=True)


class ModificationHistoryResponse(BaseModel):
    id: int
    action: str
    acted_by: Optional[str] = None
    note: Optional[str] = None
    acted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ModificationResponse(BaseModel):
    id: int
    brfq_id: int
    requested_by: Optional[str] = None
    reason: Optional[str] = None
    field: Optional[str] = None
    summary: Optional[Dict[str, Any]] = None
    status: str
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    requested_at: datetime
    history: List[ModificationHistoryResponse] = []

    model_config = ConfigDict(from_attributes=True)
