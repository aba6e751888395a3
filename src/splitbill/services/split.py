from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from splitbill.db.models import Bill, BillSummary, ConsumedPortion, ParticipantShare
from splitbill.errors import InvariantViolation


@dataclass(slots=True)
class _ShareAccumulator:
    participant_id: str
    participant_name: str
    subtotal: float = 0.0
    items_consumed: list[ConsumedPortion] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class CollectionStats:
    count: int
    total: float


def calculate_bill(bill: Bill) -> BillSummary:
    """Break a bill down into what every participant owes.

    Each item costs ``price * quantity`` and is split evenly between the
    participants assigned to it. Unassigned items still count towards the bill
    subtotal and grand total but are charged to nobody. Tax and service are
    applied per participant on their own subtotal. No rounding happens here.
    """
    accumulators: dict[str, _ShareAccumulator] = {}
    for participant in bill.participants:
        accumulators[participant.id] = _ShareAccumulator(participant.id, participant.name)

    bill_subtotal = 0.0
    for item in bill.items:
        item_total = item.price * item.quantity
        bill_subtotal += item_total

        assigned_count = len(item.assigned_to_participant_ids)
        if assigned_count == 0:
            continue

        price_per_person = item_total / assigned_count
        quantity_per_person = item.quantity / assigned_count
        for participant_id in item.assigned_to_participant_ids:
            acc = accumulators.get(participant_id)
            if acc is None:
                raise InvariantViolation(
                    f"item {item.id!r} is assigned to unknown participant {participant_id!r}"
                )
            acc.subtotal += price_per_person
            acc.items_consumed.append(
                ConsumedPortion(
                    item_name=item.name,
                    portion_price=price_per_person,
                    portion_quantity=quantity_per_person,
                )
            )

    tax_multiplier = bill.tax_rate / 100
    service_multiplier = bill.service_rate / 100

    total_tax = 0.0
    total_service = 0.0
    shares: list[ParticipantShare] = []
    for acc in accumulators.values():
        tax_amount = acc.subtotal * tax_multiplier
        service_amount = acc.subtotal * service_multiplier
        total_tax += tax_amount
        total_service += service_amount
        shares.append(
            ParticipantShare(
                participant_id=acc.participant_id,
                participant_name=acc.participant_name,
                subtotal=acc.subtotal,
                tax_amount=tax_amount,
                service_amount=service_amount,
                total_due=acc.subtotal + tax_amount + service_amount,
                items_consumed=tuple(acc.items_consumed),
            )
        )

    return BillSummary(
        bill_id=bill.id,
        subtotal=bill_subtotal,
        total_tax=total_tax,
        total_service=total_service,
        grand_total=bill_subtotal + total_tax + total_service,
        shares=tuple(shares),
    )


def unassigned_subtotal(bill: Bill) -> float:
    return sum(item.total for item in bill.items if not item.assigned_to_participant_ids)


def collection_stats(bills: Iterable[Bill]) -> CollectionStats:
    count = 0
    total = 0.0
    for bill in bills:
        count += 1
        total += calculate_bill(bill).grand_total
    return CollectionStats(count=count, total=total)
