from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from billsplit.db.database import get_db
from billsplit.api.v1.deps import get_current_user_id
from billsplit.services.split_service import assign_splits, get_item_splits
from billsplit.schemas.item_schema import SplitAssign, SplitAssignResult, ItemSplitWithMember

router = APIRouter(prefix="/splits", tags=["splits"])


@router.post("/assign", response_model=SplitAssignResult)
def assign(
    assign_data: SplitAssign,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Replace who shares an item (owner only)"""
    return assign_splits(db, assign_data, user_id)


@router.get("/{item_id}", response_model=List[ItemSplitWithMember])
def get_splits(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get who shares an item"""
    return get_item_splits(db, item_id, user_id)
