"""
Settlement Engine Module

This module turns a bill snapshot (fee configuration, line items with their
split assignments, and the member list) into a per-member breakdown of what
each member owes.

The computation runs in two passes:
1. Base allocation: every item's total price is divided among its splits.
   Fixed-amount splits are served first, the remainder is divided in
   proportion to the split weights. Anything nobody is assigned to falls to
   the bill owner's member record.
2. Fee application: per member, service charge is added on the base amount,
   then VAT on base + service charge. The result is rounded UP to the cent.

No rounding happens during pass 1; shares are carried at full Decimal
precision so small items do not compound rounding error. The grand total is
the sum of the already-rounded member totals, so it always equals what the
members are shown individually.

Example Usage:
    from billsplit.utils.settlement import compute_settlement

    summary = compute_settlement(bill, items, members)
    for member in summary.members:
        print(member.name, member.net_amount)
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_CEILING
from typing import Dict, List, Optional, Sequence, Tuple

from billsplit.schemas.summary_schema import (
    BillSummary,
    FeeConfig,
    MemberSettlement,
    SettlementBill,
    SettlementItem,
    SettlementLine,
    SettlementMember,
    SettlementSplit,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')
DEFAULT_WEIGHT = Decimal('1')
UNASSIGNED_SUFFIX = " (Unassigned)"


class InvalidSplitReference(ValueError):
    """A split points at a member that is not part of the bill being settled."""

    def __init__(self, item_id: str, member_ids: Sequence[str]):
        self.item_id = item_id
        self.member_ids = list(member_ids)
        super().__init__(
            f"Item {item_id} has splits for members outside this bill: {', '.join(self.member_ids)}"
        )


@dataclass
class _Allocation:
    member: SettlementMember
    base_amount: Decimal = ZERO
    lines: List[SettlementLine] = field(default_factory=list)

    def add(self, line: SettlementLine) -> None:
        self.base_amount += line.amount
        self.lines.append(line)


def to_decimal(value) -> Decimal:
    """Convert ints, floats and strings to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_up(value: Decimal, precision: Decimal = CENT) -> Decimal:
    """
    Round a Decimal value towards positive infinity at the given precision.

    Settlement totals are always rounded up so that the amount collected from
    members never falls short of the bill.

    Example:
        >>> round_up(Decimal("58.8501"))
        Decimal('58.86')
        >>> round_up(Decimal("58.85"))
        Decimal('58.85')
    """
    return value.quantize(precision, rounding=ROUND_CEILING)


def split_weight(split: SettlementSplit) -> Decimal:
    if split.weight is None:
        return DEFAULT_WEIGHT
    return to_decimal(split.weight)


def validate_split_members(items: Sequence[SettlementItem], members: Sequence[SettlementMember]) -> None:
    """
    Ensure every split references a member of the bill.

    Raises:
        InvalidSplitReference: for the first item carrying a foreign member id
    """
    member_ids = {member.id for member in members}
    for item in items:
        foreign = [split.member_id for split in item.splits if split.member_id not in member_ids]
        if foreign:
            raise InvalidSplitReference(item.id, foreign)


def allocate_item(item: SettlementItem) -> List[Tuple[Optional[str], SettlementLine]]:
    """
    Divide one item's total price among its splits.

    Policy:
        - Splits with a fixed_amount receive exactly that amount and take no
          part in the weight pool.
        - The remainder (total - sum of fixed amounts) is divided among the
          other splits in proportion to their weight (missing weight = 1).
        - If a positive remainder has no positive weight to go to, it is
          returned unassigned (member_id None). With no splits at all, or only
          zero-weight splits, the whole item is unassigned.
        - If the fixed amounts exceed the item total, they are scaled down
          proportionally so the item still sums to its total.

    Args:
        item: Item snapshot with its splits

    Returns:
        List of (member_id or None, SettlementLine) tuples whose amounts sum
        to the item's total price
    """
    total_price = to_decimal(item.total_price)
    fixed_splits = [s for s in item.splits if s.fixed_amount is not None]
    weighted_splits = [s for s in item.splits if s.fixed_amount is None]

    allocations = []

    fixed_total = sum((to_decimal(s.fixed_amount) for s in fixed_splits), ZERO)
    scale = DEFAULT_WEIGHT
    remainder = total_price - fixed_total
    if fixed_total > total_price:
        logger.warning(
            f"Fixed amounts on item {item.id} ({fixed_total}) exceed its total "
            f"({total_price}); scaling them down"
        )
        scale = total_price / fixed_total
        remainder = ZERO

    for split in fixed_splits:
        amount = to_decimal(split.fixed_amount) * scale
        allocations.append((split.member_id, SettlementLine(
            name=item.name,
            amount=amount,
            fixed_amount=to_decimal(split.fixed_amount),
        )))

    if remainder == ZERO and fixed_splits:
        return allocations

    total_weight = sum((split_weight(s) for s in weighted_splits), ZERO)
    if total_weight > ZERO:
        for split in weighted_splits:
            weight = split_weight(split)
            share = remainder * weight / total_weight
            allocations.append((split.member_id, SettlementLine(
                name=item.name,
                amount=share,
                weight=weight,
            )))
    else:
        allocations.append((None, SettlementLine(
            name=f"{item.name}{UNASSIGNED_SUFFIX}",
            amount=remainder,
        )))

    return allocations


def apply_fees(base_amount: Decimal, bill: SettlementBill) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Apply service charge and VAT to a member's base amount.

    Service charge is computed on the base amount; VAT is computed on base +
    service charge. A fee flagged as already included in the prices, or with
    a zero rate, contributes nothing.

    Returns:
        (sc_amount, vat_amount, net_amount) where net_amount is rounded up
        to the cent
    """
    current = base_amount
    sc_rate = to_decimal(bill.service_charge_rate)
    vat_rate = to_decimal(bill.vat_rate)

    sc_amount = ZERO
    if not bill.is_service_charge_included and sc_rate > ZERO:
        sc_amount = current * (sc_rate / HUNDRED)
        current += sc_amount

    vat_amount = ZERO
    if not bill.is_vat_included and vat_rate > ZERO:
        vat_amount = current * (vat_rate / HUNDRED)
        current += vat_amount

    return sc_amount, vat_amount, round_up(current)


def compute_settlement(
    bill: SettlementBill,
    items: Sequence[SettlementItem],
    members: Sequence[SettlementMember],
) -> BillSummary:
    """
    Compute every member's share of a bill.

    Args:
        bill: Bill fee configuration and owner reference
        items: Line items, each with its total price and zero or more splits
        members: All members of the bill; every member appears in the result,
            in this order, even with nothing allocated

    Returns:
        BillSummary with per-member breakdowns, the grand total (sum of the
        rounded member totals) and any data-integrity warnings

    Raises:
        InvalidSplitReference: if a split references a member not in `members`

    Note:
        Members are keyed by user_id when registered and by member id when
        guests. Unassigned amounts go to the member whose user_id equals the
        bill's owner_id. If that member is missing, the amount cannot be
        attributed: it is logged and reported in `warnings`, and the other
        members are still settled.
    """
    validate_split_members(items, members)

    ledger: Dict[str, _Allocation] = {}
    key_by_member_id: Dict[str, str] = {}
    for member in members:
        key = member.settlement_key
        key_by_member_id[member.id] = key
        ledger[key] = _Allocation(member=member)

    owner_key: Optional[str] = bill.owner_id if bill.owner_id in ledger else None
    warnings: List[str] = []

    # Pass 1: base allocation
    for item in items:
        for member_id, line in allocate_item(item):
            if member_id is not None:
                ledger[key_by_member_id[member_id]].add(line)
            elif owner_key is not None:
                ledger[owner_key].add(line)
            else:
                message = (
                    f"Bill {bill.id}: no member record for owner {bill.owner_id}; "
                    f"{line.amount} from unassigned item {item.id} has no recipient"
                )
                logger.warning(message)
                warnings.append(message)

    # Pass 2: fees and rounding
    settlements = []
    for allocation in ledger.values():
        sc_amount, vat_amount, net_amount = apply_fees(allocation.base_amount, bill)
        member = allocation.member
        settlements.append(MemberSettlement(
            member_id=member.id,
            user_id=member.user_id,
            name=member.name,
            base_amount=allocation.base_amount,
            sc_amount=sc_amount,
            vat_amount=vat_amount,
            net_amount=net_amount,
            is_paid=member.is_paid,
            items=allocation.lines,
        ))

    grand_total = sum((s.net_amount for s in settlements), ZERO)

    return BillSummary(
        bill_id=bill.id,
        title=bill.title,
        config=FeeConfig(
            vat=to_decimal(bill.vat_rate),
            sc=to_decimal(bill.service_charge_rate),
        ),
        members=settlements,
        grand_total=grand_total,
        warnings=warnings,
    )
