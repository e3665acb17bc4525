from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from billsplit.db.database import get_db
from billsplit.api.v1.deps import get_current_user_id
from billsplit.services.item_service import create_item, update_item, delete_item
from billsplit.schemas.item_schema import BillItemCreate, BillItemUpdate, BillItemOut

router = APIRouter(prefix="/bill-items", tags=["bill-items"])


@router.post("/", response_model=BillItemOut)
def create_new_item(
    item_data: BillItemCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Add a line item to a bill"""
    return create_item(db, item_data, user_id)


@router.patch("/{item_id}", response_model=BillItemOut)
def update_existing_item(
    item_id: str,
    update_data: BillItemUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update a line item (owner only)"""
    return update_item(db, item_id, update_data, user_id)


@router.delete("/{item_id}")
def delete_existing_item(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a line item (owner only)"""
    delete_item(db, item_id, user_id)
    return {"message": "Item deleted successfully"}
