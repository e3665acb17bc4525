from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from billsplit.db.database import get_db
from billsplit.api.v1.deps import get_current_user_id
from billsplit.services.bank_account_service import (
    create_bank_account, get_bank_accounts, delete_bank_account
)
from billsplit.schemas.bank_account_schema import BankAccountCreate, BankAccountOut

router = APIRouter(prefix="/bank-accounts", tags=["bank-accounts"])


@router.post("/", response_model=BankAccountOut)
def create_new_bank_account(
    account_data: BankAccountCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Add a payment account for the current user"""
    return create_bank_account(db, account_data, user_id)


@router.get("/", response_model=List[BankAccountOut])
def get_my_bank_accounts(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the current user's payment accounts"""
    return get_bank_accounts(db, user_id)


@router.delete("/{account_id}")
def delete_existing_bank_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete one of the current user's payment accounts"""
    delete_bank_account(db, account_id, user_id)
    return {"message": "Bank account deleted successfully"}
