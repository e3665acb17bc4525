from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from billsplit.db.database import get_db
from billsplit.api.v1.deps import get_current_user_id
from billsplit.services.bill_service import (
    create_bill, get_user_bills, get_bill_detail, update_bill, delete_bill,
    close_bill, get_bill_summary
)
from billsplit.schemas.bill_schema import (
    BillCreate, BillUpdate, BillOut, BillWithMembers, BillDetail
)
from billsplit.schemas.summary_schema import BillSummaryOut

router = APIRouter(prefix="/bills", tags=["bills"])


@router.post("/", response_model=BillWithMembers)
def create_new_bill(
    bill_data: BillCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new bill; the caller becomes its owner and first member"""
    return create_bill(db, bill_data, user_id)


@router.get("/", response_model=List[BillOut])
def get_my_bills(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all bills owned by the current user"""
    return get_user_bills(db, user_id)


@router.get("/{bill_id}", response_model=BillDetail)
def get_bill_details(
    bill_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get bill details with members, items and splits"""
    return get_bill_detail(db, bill_id, user_id)


@router.patch("/{bill_id}", response_model=BillOut)
def update_existing_bill(
    bill_id: str,
    update_data: BillUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update a bill (owner only)"""
    return update_bill(db, bill_id, update_data, user_id)


@router.delete("/{bill_id}")
def delete_existing_bill(
    bill_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Soft delete a bill (owner only)"""
    delete_bill(db, bill_id, user_id)
    return {"message": "Bill deleted successfully"}


@router.patch("/{bill_id}/close", response_model=BillOut)
def close_existing_bill(
    bill_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Close a bill and snapshot the owner's default payment account"""
    return close_bill(db, bill_id, user_id)


@router.get("/{bill_id}/summary", response_model=BillSummaryOut)
def get_summary(
    bill_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the per-member settlement of a bill"""
    return get_bill_summary(db, bill_id, user_id)
