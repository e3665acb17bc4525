import secrets
import string
from sqlalchemy.orm import Session
from billsplit.models.bills import Bill

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_LENGTH = 6
MAX_ATTEMPTS = 1000


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    """Random room code made of A-Z and 0-9"""
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def create_unique_join_code(db: Session) -> str:
    """
    Draw join codes until one is not used by any bill.
    Soft-deleted bills keep their code, so they are checked too.
    """
    for _ in range(MAX_ATTEMPTS):
        code = generate_join_code()
        if not db.query(Bill).filter(Bill.join_code == code).first():
            return code

    # 36^6 codes; reaching this means the table is saturated or the query is broken
    raise RuntimeError(f"Could not find a free join code after {MAX_ATTEMPTS} attempts")
