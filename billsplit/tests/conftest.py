"""
Pytest configuration and fixtures for billsplit tests.
"""
import os

# Point the application engine at an in-memory database before any billsplit import
os.environ.setdefault("DATABASE_URL", "sqlite://")

import jwt
import pytest
from decimal import Decimal
from sqlalchemy.orm import sessionmaker

from billsplit.db.database import Base, make_engine
from billsplit.models import bills, bank_accounts  # noqa: F401
from billsplit.schemas.bill_schema import BillCreate
from billsplit.schemas.summary_schema import (
    SettlementBill, SettlementItem, SettlementMember, SettlementSplit
)
from billsplit.services.auth.jwt_handler import SECRET_KEY, ALGORITHM

OWNER_ID = "user_owner"
FRIEND_ID = "user_friend"
STRANGER_ID = "user_stranger"


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite session per test."""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def bill(db_session):
    """Bill owned by OWNER_ID with 7% VAT and 10% service charge, both added on top."""
    from billsplit.services.bill_service import create_bill

    return create_bill(
        db_session,
        BillCreate(title="Dinner", vat_rate=Decimal("7"), service_charge_rate=Decimal("10"), owner_name="Ann"),
        OWNER_ID,
    )


@pytest.fixture
def owner_member(bill):
    return next(m for m in bill.members if m.user_id == OWNER_ID)


@pytest.fixture
def friend_member(db_session, bill):
    from billsplit.schemas.bill_schema import BillJoin
    from billsplit.services.member_service import join_bill

    member, _ = join_bill(db_session, BillJoin(join_code=bill.join_code, name="Ben"), FRIEND_ID)
    return member


def make_token(user_id: str) -> str:
    """Signed access token carrying the given user id."""
    return jwt.encode({"user_id": user_id}, SECRET_KEY, algorithm=ALGORITHM)


def auth_headers(user_id: str) -> dict:
    return {"access-token": f"Bearer {make_token(user_id)}"}


# Settlement snapshots


@pytest.fixture
def fee_bill():
    """Bill config: 7% VAT, 10% service charge, neither included in prices."""
    return SettlementBill(
        id="bill-1",
        owner_id="owner",
        title="Dinner",
        vat_rate=Decimal("7"),
        service_charge_rate=Decimal("10"),
        is_vat_included=False,
        is_service_charge_included=False,
    )


@pytest.fixture
def plain_bill():
    """Bill config without any fees."""
    return SettlementBill(
        id="bill-2",
        owner_id="owner",
        title="Lunch",
        vat_rate=Decimal("0"),
        service_charge_rate=Decimal("0"),
    )


@pytest.fixture
def two_members():
    """Registered owner plus one registered friend."""
    return [
        SettlementMember(id="m-owner", user_id="owner", name="Ann"),
        SettlementMember(id="m-friend", user_id="friend", name="Ben"),
    ]


@pytest.fixture
def three_members(two_members):
    """Owner, friend and a guest without a user id."""
    return two_members + [SettlementMember(id="m-guest", user_id=None, name="Cat")]


def make_item(item_id: str, total, splits=(), name: str = None) -> SettlementItem:
    return SettlementItem(
        id=item_id,
        name=name or item_id,
        total_price=Decimal(str(total)),
        splits=[SettlementSplit(**split) for split in splits],
    )
