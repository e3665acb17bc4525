from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class BillItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    quantity: int = Field(1, ge=1)


class BillItemCreate(BillItemBase):
    bill_id: str
    order_index: Optional[int] = Field(None, ge=0)


class BillItemUpdate(BaseModel):
    # bill_id is not updatable; items stay on the bill they were created on
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=1)
    order_index: Optional[int] = Field(None, ge=0)


class ItemSplitIn(BaseModel):
    member_id: str
    weight: Decimal = Field(Decimal("1"), ge=0, decimal_places=4)
    fixed_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class SplitAssign(BaseModel):
    item_id: str
    splits: List[ItemSplitIn] = []


class SplitAssignResult(BaseModel):
    message: str
    count: int


class SplitMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    user_id: Optional[str] = None


class ItemSplitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    member_id: str
    weight: Decimal
    fixed_amount: Optional[Decimal] = None


class ItemSplitWithMember(ItemSplitOut):
    member: SplitMemberOut


class BillItemOut(BillItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    bill_id: str
    total_price: Decimal
    order_index: int
    created_at: datetime


class BillItemWithSplits(BillItemOut):
    splits: List[ItemSplitOut] = []
