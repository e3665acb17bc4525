import logging
from sqlalchemy.orm import Session
from sqlalchemy import func
from fastapi import HTTPException
from typing import List, Optional
from billsplit.models.bills import BillItem
from billsplit.schemas.item_schema import BillItemCreate, BillItemUpdate

logger = logging.getLogger(__name__)


def create_item(db: Session, item_data: BillItemCreate, user_id: str) -> BillItem:
    """Add a line item to a bill (owner or member)"""
    from .bill_service import get_active_bill, ensure_bill_access

    bill = get_active_bill(db, item_data.bill_id)
    ensure_bill_access(db, bill, user_id)

    order_index = item_data.order_index
    if order_index is None:
        last_index = db.query(func.max(BillItem.order_index))\
            .filter(BillItem.bill_id == bill.id).scalar()
        order_index = 0 if last_index is None else last_index + 1

    item = BillItem(
        bill_id=bill.id,
        name=item_data.name,
        price=item_data.price,
        quantity=item_data.quantity,
        total_price=item_data.price * item_data.quantity,
        order_index=order_index
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def get_item(db: Session, item_id: str) -> Optional[BillItem]:
    """Get an item by ID"""
    return db.query(BillItem).filter(BillItem.id == item_id).first()


def get_bill_items(db: Session, bill_id: str) -> List[BillItem]:
    """Get all items for a bill in display order"""
    return db.query(BillItem).filter(BillItem.bill_id == bill_id)\
        .order_by(BillItem.order_index, BillItem.created_at).all()


def update_item(db: Session, item_id: str, update_data: BillItemUpdate, user_id: str) -> BillItem:
    """Update an item (owner only); total_price always follows price and quantity"""
    from .bill_service import get_active_bill, ensure_bill_owner

    item = get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    bill = get_active_bill(db, item.bill_id)
    ensure_bill_owner(bill, user_id, "update items")

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(item, field, value)

    item.total_price = item.price * item.quantity

    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, item_id: str, user_id: str):
    """Delete an item and its splits (owner only)"""
    from .bill_service import get_active_bill, ensure_bill_owner

    item = get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    bill = get_active_bill(db, item.bill_id)
    ensure_bill_owner(bill, user_id, "delete items")

    db.delete(item)
    db.commit()
    logger.info(f"Item {item_id} removed from bill {bill.id}")
