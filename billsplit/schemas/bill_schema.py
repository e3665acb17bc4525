from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum
from billsplit.schemas.item_schema import BillItemWithSplits


class BillStatus(str, Enum):
    DRAFT = "DRAFT"
    OCR_PROCESSING = "OCR_PROCESSING"
    SPLITTING = "SPLITTING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BillBase(BaseModel):
    title: str = Field("New Bill", min_length=1, max_length=200)
    note: Optional[str] = None
    vat_rate: Decimal = Field(Decimal("7"), ge=0)
    service_charge_rate: Decimal = Field(Decimal("10"), ge=0)
    is_vat_included: bool = False
    is_service_charge_included: bool = False
    currency: str = Field("THB", min_length=3, max_length=3)


class BillCreate(BillBase):
    owner_name: Optional[str] = Field(None, max_length=100)
    prompt_pay_number: Optional[str] = None
    prompt_pay_name: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None


class BillUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    note: Optional[str] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0)
    service_charge_rate: Optional[Decimal] = Field(None, ge=0)
    is_vat_included: Optional[bool] = None
    is_service_charge_included: Optional[bool] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    status: Optional[BillStatus] = None
    prompt_pay_number: Optional[str] = None
    prompt_pay_name: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None


class BillOut(BillBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    join_code: str
    status: BillStatus
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    prompt_pay_name: Optional[str] = None
    prompt_pay_number: Optional[str] = None
    created_at: datetime


class BillMemberCreate(BaseModel):
    """Guest member added by the bill owner"""
    bill_id: str
    name: str = Field(..., min_length=1, max_length=100)


class BillJoin(BaseModel):
    join_code: str = Field(..., min_length=6, max_length=6)
    name: Optional[str] = Field(None, max_length=100)

    @field_validator("join_code")
    @classmethod
    def normalize_join_code(cls, value: str) -> str:
        return value.upper()


class BillMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    bill_id: str
    user_id: Optional[str] = None
    name: str
    is_paid: bool
    paid_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    joined_at: datetime


class JoinBillOut(BaseModel):
    message: str
    bill_id: str
    member: BillMemberOut


class BillWithMembers(BillOut):
    members: List[BillMemberOut] = []


class BillDetail(BillWithMembers):
    items: List[BillItemWithSplits] = []
