import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException
from typing import List, Optional, Tuple
from billsplit.models.bills import BillMember, BillStatus
from billsplit.schemas.bill_schema import BillJoin, BillMemberCreate

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_NAME = "Member"


def join_bill(db: Session, join_data: BillJoin, user_id: str) -> Tuple[BillMember, bool]:
    """
    Join a bill through its join code.

    Returns:
        (member, created) where created is False if the user had already joined
    """
    from .bill_service import get_bill_by_join_code

    bill = get_bill_by_join_code(db, join_data.join_code)
    if not bill:
        raise HTTPException(status_code=404, detail="Invalid join code")

    if bill.status == BillStatus.CANCELLED or bill.deleted_at is not None:
        raise HTTPException(status_code=400, detail="This bill has been cancelled")

    existing = db.query(BillMember).filter(
        BillMember.bill_id == bill.id, BillMember.user_id == user_id
    ).first()
    if existing:
        return existing, False

    member = BillMember(
        bill_id=bill.id,
        user_id=user_id,
        name=join_data.name or DEFAULT_MEMBER_NAME,
        is_paid=False
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent join for the same user won the race
        db.rollback()
        existing = db.query(BillMember).filter(
            BillMember.bill_id == bill.id, BillMember.user_id == user_id
        ).first()
        if existing is None:
            raise
        return existing, False
    db.refresh(member)

    logger.info(f"User {user_id} joined bill {bill.id} as member {member.id}")
    return member, True


def add_guest_member(db: Session, member_data: BillMemberCreate, user_id: str) -> BillMember:
    """Add a guest (a member without a login) to a bill (owner only)"""
    from .bill_service import get_active_bill, ensure_bill_owner

    bill = get_active_bill(db, member_data.bill_id)
    ensure_bill_owner(bill, user_id, "add guests")

    member = BillMember(
        bill_id=bill.id,
        user_id=None,
        name=member_data.name,
        is_paid=False
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def get_member(db: Session, member_id: str) -> Optional[BillMember]:
    """Get a bill member by ID"""
    return db.query(BillMember).filter(BillMember.id == member_id).first()


def get_bill_members(db: Session, bill_id: str, user_id: str) -> List[BillMember]:
    """Get all members of a bill (owner or member only)"""
    from .bill_service import get_active_bill, ensure_bill_access

    bill = get_active_bill(db, bill_id)
    ensure_bill_access(db, bill, user_id)
    return db.query(BillMember).filter(BillMember.bill_id == bill_id).all()


def toggle_paid_status(db: Session, member_id: str, user_id: str) -> BillMember:
    """
    Flip a member's paid flag (the member themselves or the bill owner).

    Marking unpaid also withdraws any earlier owner verification.
    """
    from .bill_service import get_active_bill, is_bill_owner

    member = get_member(db, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    bill = get_active_bill(db, member.bill_id)
    if member.user_id != user_id and not is_bill_owner(bill, user_id):
        raise HTTPException(status_code=403, detail="You can only update your own payment status")

    member.is_paid = not member.is_paid
    if member.is_paid:
        member.paid_at = datetime.now(timezone.utc)
    else:
        member.paid_at = None
        member.verified_at = None

    db.commit()
    db.refresh(member)
    return member


def verify_payment(db: Session, member_id: str, user_id: str) -> BillMember:
    """Confirm a member's payment (owner only)"""
    from .bill_service import get_active_bill, ensure_bill_owner

    member = get_member(db, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    bill = get_active_bill(db, member.bill_id)
    ensure_bill_owner(bill, user_id, "verify payments")

    now = datetime.now(timezone.utc)
    member.is_paid = True
    if member.paid_at is None:
        member.paid_at = now
    member.verified_at = now

    db.commit()
    db.refresh(member)

    logger.info(f"Payment of member {member_id} verified on bill {bill.id}")
    return member
