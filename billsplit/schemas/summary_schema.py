from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from decimal import Decimal


# Settlement snapshot: the read-only view of a bill the settlement engine consumes.
# Each model validates directly from the matching ORM row.

class SettlementSplit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    member_id: str
    weight: Optional[Decimal] = None
    fixed_amount: Optional[Decimal] = None


class SettlementItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    total_price: Decimal
    splits: List[SettlementSplit] = []


class SettlementMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    name: str
    is_paid: bool = False

    @property
    def settlement_key(self) -> str:
        """Registered members settle under their user id, guests under their member id"""
        return self.user_id or self.id


class SettlementBill(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    vat_rate: Decimal = Decimal("0")
    service_charge_rate: Decimal = Decimal("0")
    is_vat_included: bool = False
    is_service_charge_included: bool = False


# Settlement result

class SettlementLine(BaseModel):
    name: str
    amount: Decimal
    weight: Optional[Decimal] = None
    fixed_amount: Optional[Decimal] = None


class MemberSettlement(BaseModel):
    member_id: str
    user_id: Optional[str] = None
    name: str
    base_amount: Decimal
    sc_amount: Decimal
    vat_amount: Decimal
    net_amount: Decimal
    is_paid: bool = False
    items: List[SettlementLine] = []


class FeeConfig(BaseModel):
    vat: Decimal
    sc: Decimal


class BillSummary(BaseModel):
    bill_id: str
    title: str
    config: FeeConfig
    members: List[MemberSettlement] = []
    grand_total: Decimal
    warnings: List[str] = []


class BillSummaryOut(BillSummary):
    """Settlement result decorated with the bill's status and payment details"""
    status: str
    currency: str
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    prompt_pay_name: Optional[str] = None
    prompt_pay_number: Optional[str] = None
