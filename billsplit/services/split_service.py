import logging
from decimal import Decimal
from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException
from typing import List
from billsplit.models.bills import BillMember, ItemSplit
from billsplit.schemas.item_schema import SplitAssign, SplitAssignResult

logger = logging.getLogger(__name__)


def validate_split_members(db: Session, bill_id: str, member_ids: List[str]) -> None:
    """
    Reject a split set that references members of another bill.

    Raises:
        HTTPException 400 listing every member id not found on the bill
    """
    if not member_ids:
        return

    valid_ids = {
        member_id for (member_id,) in db.query(BillMember.id).filter(
            BillMember.bill_id == bill_id, BillMember.id.in_(member_ids)
        ).all()
    }
    invalid_ids = [member_id for member_id in member_ids if member_id not in valid_ids]
    if invalid_ids:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid members (not in this bill): {', '.join(invalid_ids)}"
        )


def assign_splits(db: Session, assign_data: SplitAssign, user_id: str) -> SplitAssignResult:
    """
    Replace the full split set of an item (owner only).

    Existing splits are deleted and the new ones inserted in one transaction,
    so readers see either the old set or the new one. An empty list leaves
    the item unassigned.
    """
    from .bill_service import get_active_bill, ensure_bill_owner
    from .item_service import get_item

    item = get_item(db, assign_data.item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    bill = get_active_bill(db, item.bill_id)
    ensure_bill_owner(bill, user_id, "manage splits")

    member_ids = [split.member_id for split in assign_data.splits]
    if len(set(member_ids)) != len(member_ids):
        raise HTTPException(status_code=400, detail="Each member can only appear once per item")

    validate_split_members(db, bill.id, member_ids)

    fixed_total = sum(
        (split.fixed_amount for split in assign_data.splits if split.fixed_amount is not None),
        Decimal("0")
    )
    if fixed_total > item.total_price:
        raise HTTPException(
            status_code=400,
            detail=f"Fixed amounts ({fixed_total}) exceed the item total ({item.total_price})"
        )

    try:
        db.query(ItemSplit).filter(ItemSplit.item_id == item.id).delete(synchronize_session=False)
        for split in assign_data.splits:
            db.add(ItemSplit(
                item_id=item.id,
                member_id=split.member_id,
                weight=split.weight,
                fixed_amount=split.fixed_amount
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Assigned {len(assign_data.splits)} splits to item {item.id} on bill {bill.id}")
    return SplitAssignResult(message="Splits updated successfully", count=len(assign_data.splits))


def get_item_splits(db: Session, item_id: str, user_id: str) -> List[ItemSplit]:
    """Get the splits of an item with their members (owner or member only)"""
    from .bill_service import get_active_bill, ensure_bill_access
    from .item_service import get_item

    item = get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    bill = get_active_bill(db, item.bill_id)
    ensure_bill_access(db, bill, user_id)

    return db.query(ItemSplit).options(selectinload(ItemSplit.member))\
        .filter(ItemSplit.item_id == item_id).all()
