import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import and_
from fastapi import HTTPException
from typing import List, Optional
from billsplit.models.bills import Bill, BillMember, BillItem, BillStatus
from billsplit.models.bank_accounts import UserBankAccount
from billsplit.schemas.bill_schema import BillCreate, BillUpdate
from billsplit.schemas.summary_schema import (
    BillSummaryOut, SettlementBill, SettlementItem, SettlementMember
)
from billsplit.utils.join_code import create_unique_join_code
from billsplit.utils.settlement import compute_settlement, InvalidSplitReference

logger = logging.getLogger(__name__)

DEFAULT_OWNER_NAME = "Owner"

# Nullable bill columns; an explicit null clears them, on any other field it is ignored
CLEARABLE_FIELDS = {"note", "bank_name", "bank_account", "prompt_pay_name", "prompt_pay_number"}


def create_bill(db: Session, bill_data: BillCreate, owner_id: str) -> Bill:
    """Create a new bill and enroll the owner as its first member"""
    join_code = create_unique_join_code(db)

    bill = Bill(
        owner_id=owner_id,
        join_code=join_code,
        status=BillStatus.DRAFT,
        **bill_data.model_dump(exclude={"owner_name"})
    )
    bill.members.append(BillMember(
        user_id=owner_id,
        name=bill_data.owner_name or DEFAULT_OWNER_NAME,
        is_paid=False
    ))
    db.add(bill)
    db.commit()
    db.refresh(bill)

    logger.info(f"Created bill {bill.id} ({join_code}) for owner {owner_id}")
    return bill


def get_bill(db: Session, bill_id: str) -> Optional[Bill]:
    """Get a bill by ID, including soft-deleted ones"""
    return db.query(Bill).filter(Bill.id == bill_id).first()


def get_active_bill(db: Session, bill_id: str) -> Bill:
    """Get a bill that exists and has not been soft-deleted"""
    bill = get_bill(db, bill_id)
    if not bill:
        raise HTTPException(status_code=404, detail="Bill not found")
    if bill.deleted_at is not None:
        raise HTTPException(status_code=404, detail="Bill has been deleted")
    return bill


def get_bill_by_join_code(db: Session, join_code: str) -> Optional[Bill]:
    return db.query(Bill).filter(Bill.join_code == join_code.upper()).first()


def get_user_bills(db: Session, user_id: str) -> List[Bill]:
    """Get all bills owned by a user, newest first, excluding soft-deleted ones"""
    return db.query(Bill).filter(
        and_(Bill.owner_id == user_id, Bill.deleted_at.is_(None))
    ).order_by(Bill.created_at.desc()).all()


def is_bill_owner(bill: Bill, user_id: str) -> bool:
    return bill.owner_id == user_id


def is_bill_member(db: Session, bill_id: str, user_id: str) -> bool:
    """Check if a user has a member record on a bill"""
    member = db.query(BillMember).filter(
        and_(BillMember.bill_id == bill_id, BillMember.user_id == user_id)
    ).first()
    return member is not None


def ensure_bill_access(db: Session, bill: Bill, user_id: str) -> None:
    """Raise 403 unless the user owns the bill or is one of its members"""
    if not is_bill_owner(bill, user_id) and not is_bill_member(db, bill.id, user_id):
        raise HTTPException(status_code=403, detail="You are not a member of this bill")


def ensure_bill_owner(bill: Bill, user_id: str, action: str) -> None:
    if not is_bill_owner(bill, user_id):
        raise HTTPException(status_code=403, detail=f"Only owner can {action}")


def get_bill_detail(db: Session, bill_id: str, user_id: str) -> Bill:
    """Get a bill with its members, items and splits (owner or member only)"""
    bill = db.query(Bill).options(
        selectinload(Bill.members),
        selectinload(Bill.items).selectinload(BillItem.splits)
    ).filter(Bill.id == bill_id).first()

    if not bill:
        raise HTTPException(status_code=404, detail="Bill not found")
    if bill.deleted_at is not None:
        raise HTTPException(status_code=404, detail="Bill has been deleted")

    ensure_bill_access(db, bill, user_id)
    return bill


def update_bill(db: Session, bill_id: str, update_data: BillUpdate, user_id: str) -> Bill:
    """Update a bill (owner only)"""
    bill = get_active_bill(db, bill_id)
    ensure_bill_owner(bill, user_id, "update bill")

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if value is None and field not in CLEARABLE_FIELDS:
            continue
        if field == "status" and value is not None:
            value = BillStatus(value)
        setattr(bill, field, value)

    db.commit()
    db.refresh(bill)
    return bill


def delete_bill(db: Session, bill_id: str, user_id: str) -> Bill:
    """Soft delete a bill (owner only): it is hidden and marked cancelled, never removed"""
    bill = get_active_bill(db, bill_id)
    ensure_bill_owner(bill, user_id, "delete bill")

    bill.deleted_at = datetime.now(timezone.utc)
    bill.status = BillStatus.CANCELLED
    db.commit()
    db.refresh(bill)

    logger.info(f"Bill {bill_id} soft-deleted by {user_id}")
    return bill


def close_bill(db: Session, bill_id: str, user_id: str) -> Bill:
    """
    Close a bill and snapshot the owner's payment details onto it.

    The owner's default bank account is copied, not referenced: editing or
    deleting the account later leaves the closed bill unchanged. Without a
    default account the payment fields are cleared.
    """
    bill = get_active_bill(db, bill_id)
    ensure_bill_owner(bill, user_id, "close bill")

    bank = db.query(UserBankAccount).filter(
        and_(UserBankAccount.user_id == user_id, UserBankAccount.is_default == True)
    ).first()

    bill.status = BillStatus.COMPLETED
    bill.bank_name = bank.bank_name if bank else None
    bill.bank_account = bank.account_number if bank else None
    bill.prompt_pay_name = bank.account_name if bank else None
    bill.prompt_pay_number = bank.account_number if bank else None

    db.commit()
    db.refresh(bill)

    logger.info(f"Bill {bill_id} closed by {user_id} (payment snapshot: {bank.id if bank else 'none'})")
    return bill


def get_bill_summary(db: Session, bill_id: str, user_id: str) -> BillSummaryOut:
    """
    Compute the settlement for a bill from its current state.

    The summary is computed fresh on every call and never stored.
    """
    bill = get_bill_detail(db, bill_id, user_id)

    snapshot = SettlementBill.model_validate(bill)
    items = [SettlementItem.model_validate(item) for item in bill.items]
    members = [SettlementMember.model_validate(member) for member in bill.members]

    try:
        summary = compute_settlement(snapshot, items, members)
    except InvalidSplitReference as e:
        logger.error(f"Bill {bill_id} has inconsistent splits: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    return BillSummaryOut(
        **summary.model_dump(),
        status=bill.status.value,
        currency=bill.currency,
        bank_name=bill.bank_name,
        bank_account=bill.bank_account,
        prompt_pay_name=bill.prompt_pay_name,
        prompt_pay_number=bill.prompt_pay_number
    )
