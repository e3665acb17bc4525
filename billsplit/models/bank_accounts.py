import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, Boolean
from billsplit.db.database import Base


class UserBankAccount(Base):
    __tablename__ = "user_bank_accounts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    user_id = Column(String, nullable=False, index=True)  # Reference to identity provider
    bank_name = Column(String(100), nullable=False)  # e.g. KBANK, SCB, PROMPTPAY
    account_number = Column(String(50), nullable=False)
    account_name = Column(String(100), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
