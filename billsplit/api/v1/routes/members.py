from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from billsplit.db.database import get_db
from billsplit.api.v1.deps import get_current_user_id
from billsplit.services.member_service import (
    join_bill, add_guest_member, get_bill_members, toggle_paid_status, verify_payment
)
from billsplit.schemas.bill_schema import BillJoin, BillMemberCreate, BillMemberOut, JoinBillOut

router = APIRouter(prefix="/bill-members", tags=["bill-members"])


@router.post("/join", response_model=JoinBillOut)
def join_existing_bill(
    join_data: BillJoin,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Join a bill with its 6-character join code"""
    member, created = join_bill(db, join_data, user_id)
    return JoinBillOut(
        message="Joined successfully" if created else "Already joined",
        bill_id=member.bill_id,
        member=BillMemberOut.model_validate(member)
    )


@router.post("/", response_model=BillMemberOut)
def add_guest(
    member_data: BillMemberCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Add a guest member without a login (owner only)"""
    return add_guest_member(db, member_data, user_id)


@router.get("/{bill_id}", response_model=List[BillMemberOut])
def get_members(
    bill_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all members of a bill"""
    return get_bill_members(db, bill_id, user_id)


@router.patch("/{member_id}/toggle-paid", response_model=BillMemberOut)
def toggle_paid(
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Mark a member as paid or unpaid"""
    return toggle_paid_status(db, member_id, user_id)


@router.patch("/{member_id}/verify", response_model=BillMemberOut)
def verify(
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Confirm a member's payment (owner only)"""
    return verify_payment(db, member_id, user_id)
