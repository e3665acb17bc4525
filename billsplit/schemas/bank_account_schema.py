from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime


class BankAccountBase(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=50)
    account_name: str = Field(..., min_length=1, max_length=100)
    is_default: bool = False


class BankAccountCreate(BankAccountBase):
    pass


class BankAccountOut(BankAccountBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: datetime
