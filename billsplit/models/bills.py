import enum
import uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy import (
    Column, String, DateTime, Enum, ForeignKey, Boolean, DECIMAL, Integer, Text, UniqueConstraint
)
from billsplit.db.database import Base


class BillStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    OCR_PROCESSING = "OCR_PROCESSING"
    SPLITTING = "SPLITTING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Bill(Base):
    __tablename__ = "bills"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    owner_id = Column(String, nullable=False, index=True)  # Reference to identity provider (no FK constraint)
    title = Column(String(200), nullable=False, default="New Bill")
    note = Column(Text, nullable=True)
    join_code = Column(String(6), nullable=False, unique=True, index=True)
    status = Column(Enum(BillStatus), nullable=False, default=BillStatus.DRAFT)
    currency = Column(String(3), nullable=False, default="THB")

    vat_rate = Column(DECIMAL(5, 2), nullable=False, default=7)
    service_charge_rate = Column(DECIMAL(5, 2), nullable=False, default=10)
    is_vat_included = Column(Boolean, nullable=False, default=False)
    is_service_charge_included = Column(Boolean, nullable=False, default=False)

    # Payment info copied from the owner's default account when the bill is closed
    bank_name = Column(String(100), nullable=True)
    bank_account = Column(String(50), nullable=True)
    prompt_pay_name = Column(String(100), nullable=True)
    prompt_pay_number = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    members = relationship("BillMember", back_populates="bill", cascade="all, delete-orphan")
    items = relationship("BillItem", back_populates="bill", cascade="all, delete-orphan",
                         order_by=lambda: [BillItem.order_index, BillItem.created_at])


class BillMember(Base):
    __tablename__ = "bill_members"
    # One member row per user and bill; guests (user_id NULL) are not constrained
    __table_args__ = (UniqueConstraint("bill_id", "user_id", name="uq_bill_members_bill_user"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    bill_id = Column(String, ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=True, index=True)  # Null for guests without a login
    name = Column(String(100), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    bill = relationship("Bill", back_populates="members")


class BillItem(Base):
    __tablename__ = "bill_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    bill_id = Column(String, ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    total_price = Column(DECIMAL(12, 2), nullable=False)  # price * quantity, kept in sync on every write
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    bill = relationship("Bill", back_populates="items")
    splits = relationship("ItemSplit", back_populates="item", cascade="all, delete-orphan")


class ItemSplit(Base):
    __tablename__ = "item_splits"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    item_id = Column(String, ForeignKey("bill_items.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String, ForeignKey("bill_members.id", ondelete="CASCADE"), nullable=False, index=True)
    weight = Column(DECIMAL(10, 4), nullable=False, default=1)
    fixed_amount = Column(DECIMAL(10, 2), nullable=True)

    item = relationship("BillItem", back_populates="splits")
    member = relationship("BillMember")
