import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_
from fastapi import HTTPException
from typing import List
from billsplit.models.bank_accounts import UserBankAccount
from billsplit.schemas.bank_account_schema import BankAccountCreate

logger = logging.getLogger(__name__)


def create_bank_account(db: Session, account_data: BankAccountCreate, user_id: str) -> UserBankAccount:
    """
    Add a payment account for a user.

    A user's first account is always the default. A new default account
    demotes the previous one, so there is at most one default per user.
    """
    existing_count = db.query(UserBankAccount).filter(UserBankAccount.user_id == user_id).count()
    is_default = True if existing_count == 0 else account_data.is_default

    if is_default:
        db.query(UserBankAccount).filter(
            and_(UserBankAccount.user_id == user_id, UserBankAccount.is_default == True)
        ).update({UserBankAccount.is_default: False}, synchronize_session=False)

    account = UserBankAccount(
        user_id=user_id,
        bank_name=account_data.bank_name,
        account_number=account_data.account_number,
        account_name=account_data.account_name,
        is_default=is_default
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def get_bank_accounts(db: Session, user_id: str) -> List[UserBankAccount]:
    """Get a user's accounts, default first, then newest"""
    return db.query(UserBankAccount).filter(UserBankAccount.user_id == user_id)\
        .order_by(UserBankAccount.is_default.desc(), UserBankAccount.created_at.desc()).all()


def delete_bank_account(db: Session, account_id: str, user_id: str):
    """Delete one of the caller's own accounts"""
    account = db.query(UserBankAccount).filter(UserBankAccount.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")

    if account.user_id != user_id:
        raise HTTPException(status_code=403, detail="You can only delete your own bank accounts")

    db.delete(account)
    db.commit()
    logger.info(f"Bank account {account_id} deleted by {user_id}")
