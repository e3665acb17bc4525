"""
Tests for split assignment: membership validation and full replacement.
"""
import pytest
from decimal import Decimal
from fastapi import HTTPException

from billsplit.models.bills import ItemSplit
from billsplit.schemas.bill_schema import BillCreate
from billsplit.schemas.item_schema import BillItemCreate, ItemSplitIn, SplitAssign
from billsplit.services.bill_service import create_bill
from billsplit.services.item_service import create_item
from billsplit.services.split_service import assign_splits, get_item_splits
from billsplit.tests.conftest import OWNER_ID, FRIEND_ID, STRANGER_ID


@pytest.fixture
def item(db_session, bill):
    return create_item(
        db_session,
        BillItemCreate(bill_id=bill.id, name="Pizza", price=Decimal("50"), quantity=2),
        OWNER_ID,
    )


def stored_splits(db_session, item_id):
    return db_session.query(ItemSplit).filter(ItemSplit.item_id == item_id).all()


class TestAssignSplits:

    def test_assign_weighted(self, db_session, item, owner_member, friend_member):
        result = assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=owner_member.id, weight=Decimal("1")),
            ItemSplitIn(member_id=friend_member.id, weight=Decimal("2")),
        ]), OWNER_ID)

        assert result.count == 2
        assert result.message == "Splits updated successfully"
        weights = {s.member_id: s.weight for s in stored_splits(db_session, item.id)}
        assert weights == {owner_member.id: Decimal("1"), friend_member.id: Decimal("2")}

    def test_default_weight_is_one(self, db_session, item, friend_member):
        assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=friend_member.id),
        ]), OWNER_ID)

        [split] = stored_splits(db_session, item.id)
        assert split.weight == Decimal("1")
        assert split.fixed_amount is None

    def test_reassign_replaces_whole_set(self, db_session, item, owner_member, friend_member):
        assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=owner_member.id),
            ItemSplitIn(member_id=friend_member.id),
        ]), OWNER_ID)
        assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=friend_member.id, weight=Decimal("3")),
        ]), OWNER_ID)

        splits = stored_splits(db_session, item.id)
        assert [(s.member_id, s.weight) for s in splits] == [(friend_member.id, Decimal("3"))]

    def test_empty_set_unassigns(self, db_session, item, friend_member):
        assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=friend_member.id),
        ]), OWNER_ID)
        result = assign_splits(db_session, SplitAssign(item_id=item.id, splits=[]), OWNER_ID)

        assert result.count == 0
        assert stored_splits(db_session, item.id) == []

    def test_member_of_other_bill_rejected(self, db_session, item, friend_member):
        other_bill = create_bill(db_session, BillCreate(title="Other"), STRANGER_ID)
        foreign_member = other_bill.members[0]

        with pytest.raises(HTTPException) as exc_info:
            assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
                ItemSplitIn(member_id=friend_member.id),
                ItemSplitIn(member_id=foreign_member.id),
            ]), OWNER_ID)

        assert exc_info.value.status_code == 400
        assert foreign_member.id in exc_info.value.detail
        assert friend_member.id not in exc_info.value.detail
        assert stored_splits(db_session, item.id) == []

    def test_unknown_member_rejected_and_old_set_kept(self, db_session, item, owner_member):
        assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=owner_member.id),
        ]), OWNER_ID)

        with pytest.raises(HTTPException) as exc_info:
            assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
                ItemSplitIn(member_id="does-not-exist"),
            ]), OWNER_ID)

        assert exc_info.value.status_code == 400
        assert [s.member_id for s in stored_splits(db_session, item.id)] == [owner_member.id]

    def test_duplicate_member_rejected(self, db_session, item, friend_member):
        with pytest.raises(HTTPException) as exc_info:
            assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
                ItemSplitIn(member_id=friend_member.id),
                ItemSplitIn(member_id=friend_member.id),
            ]), OWNER_ID)
        assert exc_info.value.status_code == 400

    def test_fixed_amounts_over_total_rejected(self, db_session, item, owner_member, friend_member):
        with pytest.raises(HTTPException) as exc_info:
            assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
                ItemSplitIn(member_id=owner_member.id, fixed_amount=Decimal("60")),
                ItemSplitIn(member_id=friend_member.id, fixed_amount=Decimal("50")),
            ]), OWNER_ID)
        assert exc_info.value.status_code == 400

    def test_only_owner_can_assign(self, db_session, item, friend_member):
        with pytest.raises(HTTPException) as exc_info:
            assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
                ItemSplitIn(member_id=friend_member.id),
            ]), FRIEND_ID)
        assert exc_info.value.status_code == 403

    def test_missing_item(self, db_session, bill):
        with pytest.raises(HTTPException) as exc_info:
            assign_splits(db_session, SplitAssign(item_id="nope", splits=[]), OWNER_ID)
        assert exc_info.value.status_code == 404


class TestGetItemSplits:

    def test_includes_member(self, db_session, item, friend_member):
        assign_splits(db_session, SplitAssign(item_id=item.id, splits=[
            ItemSplitIn(member_id=friend_member.id, weight=Decimal("2")),
        ]), OWNER_ID)

        [split] = get_item_splits(db_session, item.id, FRIEND_ID)
        assert split.member.name == "Ben"
        assert split.member.user_id == FRIEND_ID

    def test_stranger_forbidden(self, db_session, item):
        with pytest.raises(HTTPException) as exc_info:
            get_item_splits(db_session, item.id, STRANGER_ID)
        assert exc_info.value.status_code == 403
