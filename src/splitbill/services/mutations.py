"""Structural edits of a single bill.

Every function takes a bill and returns a bill. Unknown item or participant ids
leave the bill untouched and the very same object is returned, so callers can
tell a no-op apart with ``is``. Bad input raises ``BillValidationError``.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Optional

from splitbill.db.models import Bill, IdFactory, LineItem, Participant, new_id
from splitbill.errors import BillValidationError, InvariantViolation
from splitbill.logging import get_logger
from splitbill.services.authz import assert_removable

log = get_logger(__name__)


def _clean_name(name: str, what: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise BillValidationError(f"{what} name must not be empty")
    return name.strip()


def _validate_price(price: float) -> float:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise BillValidationError("price must be a number")
    if not math.isfinite(price) or price <= 0:
        raise BillValidationError("price must be a positive number")
    return float(price)


def _validate_quantity(quantity: int) -> int:
    if isinstance(quantity, float) and quantity.is_integer():
        quantity = int(quantity)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise BillValidationError("quantity must be a whole number")
    if quantity < 1:
        raise BillValidationError("quantity must be at least 1")
    return quantity


def _validate_rate(rate: float, what: str) -> float:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)):
        raise BillValidationError(f"{what} rate must be a number")
    if not math.isfinite(rate) or rate < 0:
        raise BillValidationError(f"{what} rate must not be negative")
    return float(rate)


def _replace_item(bill: Bill, item: LineItem) -> Bill:
    return replace(bill, items=tuple(item if i.id == item.id else i for i in bill.items))


def set_info(bill: Bill, title: str, tax_rate: float, service_rate: float) -> Bill:
    if not isinstance(title, str):
        raise BillValidationError("title must be a string")
    tax = _validate_rate(tax_rate, "tax")
    service = _validate_rate(service_rate, "service")
    log.debug("bill.set_info", bill_id=bill.id, tax_rate=tax, service_rate=service)
    return replace(bill, title=title, tax_rate=tax, service_rate=service)


def add_participant(bill: Bill, name: str, id_factory: IdFactory = new_id) -> Bill:
    participant = Participant(id=id_factory(), name=_clean_name(name, "participant"), is_owner=False)
    log.debug("bill.add_participant", bill_id=bill.id, participant_id=participant.id)
    return replace(bill, participants=bill.participants + (participant,))


def add_owner(bill: Bill, name: str, id_factory: IdFactory = new_id) -> Bill:
    """Put the bill's creator at the head of the participant list.

    A bill has at most one owner; when one is already present the bill is
    returned unchanged.
    """
    if bill.owner is not None:
        return bill
    owner = Participant(id=id_factory(), name=_clean_name(name, "owner"), is_owner=True)
    log.debug("bill.add_owner", bill_id=bill.id, participant_id=owner.id)
    return replace(bill, participants=(owner,) + bill.participants)


def remove_participant(bill: Bill, participant_id: str, protect_owner: bool = True) -> Bill:
    if bill.get_participant(participant_id) is None:
        return bill
    assert_removable(bill, participant_id, protect_owner)

    participants = tuple(p for p in bill.participants if p.id != participant_id)
    items = tuple(
        replace(
            item,
            assigned_to_participant_ids=tuple(
                pid for pid in item.assigned_to_participant_ids if pid != participant_id
            ),
        )
        if item.is_assigned_to(participant_id)
        else item
        for item in bill.items
    )
    log.debug("bill.remove_participant", bill_id=bill.id, participant_id=participant_id)
    return replace(bill, participants=participants, items=items)


def add_item(
    bill: Bill,
    name: str,
    price: float,
    quantity: int = 1,
    id_factory: IdFactory = new_id,
) -> Bill:
    item = LineItem(
        id=id_factory(),
        name=_clean_name(name, "item"),
        price=_validate_price(price),
        quantity=_validate_quantity(quantity),
    )
    log.debug("bill.add_item", bill_id=bill.id, item_id=item.id)
    return replace(bill, items=bill.items + (item,))


def update_item(
    bill: Bill,
    item_id: str,
    name: Optional[str] = None,
    price: Optional[float] = None,
    quantity: Optional[int] = None,
) -> Bill:
    """Change any of name/price/quantity. Assignments are kept as they are."""
    item = bill.get_item(item_id)
    if item is None:
        return bill

    changes: dict[str, object] = {}
    if name is not None:
        changes["name"] = _clean_name(name, "item")
    if price is not None:
        changes["price"] = _validate_price(price)
    if quantity is not None:
        changes["quantity"] = _validate_quantity(quantity)
    if not changes:
        return bill

    log.debug("bill.update_item", bill_id=bill.id, item_id=item_id, fields=sorted(changes))
    return _replace_item(bill, replace(item, **changes))


def remove_item(bill: Bill, item_id: str) -> Bill:
    if bill.get_item(item_id) is None:
        return bill
    log.debug("bill.remove_item", bill_id=bill.id, item_id=item_id)
    return replace(bill, items=tuple(i for i in bill.items if i.id != item_id))


def toggle_assignment(bill: Bill, item_id: str, participant_id: str) -> Bill:
    item = bill.get_item(item_id)
    if item is None or bill.get_participant(participant_id) is None:
        return bill

    wanted = set(item.assigned_to_participant_ids) ^ {participant_id}
    # always in participant order
    assigned = tuple(pid for pid in bill.participant_ids if pid in wanted)

    log.debug(
        "bill.toggle_assignment",
        bill_id=bill.id,
        item_id=item_id,
        participant_id=participant_id,
        assigned=participant_id in assigned,
    )
    return _replace_item(bill, replace(item, assigned_to_participant_ids=assigned))


def toggle_all(bill: Bill, item_id: str, select_all: bool) -> Bill:
    item = bill.get_item(item_id)
    if item is None:
        return bill
    assigned = bill.participant_ids if select_all else ()
    log.debug("bill.toggle_all", bill_id=bill.id, item_id=item_id, select_all=select_all)
    return _replace_item(bill, replace(item, assigned_to_participant_ids=assigned))


def close_bill(bill: Bill) -> Bill:
    if bill.is_closed:
        return bill
    log.debug("bill.close", bill_id=bill.id)
    return replace(bill, is_closed=True)


def check_invariants(bill: Bill) -> None:
    participant_ids = bill.participant_ids
    if len(set(participant_ids)) != len(participant_ids):
        raise InvariantViolation(f"bill {bill.id!r} has duplicate participant ids")

    item_ids = [item.id for item in bill.items]
    if len(set(item_ids)) != len(item_ids):
        raise InvariantViolation(f"bill {bill.id!r} has duplicate item ids")

    if sum(1 for p in bill.participants if p.is_owner) > 1:
        raise InvariantViolation(f"bill {bill.id!r} has more than one owner")

    if not (math.isfinite(bill.tax_rate) and bill.tax_rate >= 0):
        raise InvariantViolation(f"bill {bill.id!r} has an invalid tax rate")
    if not (math.isfinite(bill.service_rate) and bill.service_rate >= 0):
        raise InvariantViolation(f"bill {bill.id!r} has an invalid service rate")

    known = set(participant_ids)
    for item in bill.items:
        if not (math.isfinite(item.price) and item.price > 0):
            raise InvariantViolation(f"item {item.id!r} has a non-positive price")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise InvariantViolation(f"item {item.id!r} has an invalid quantity")
        assigned = item.assigned_to_participant_ids
        if len(set(assigned)) != len(assigned):
            raise InvariantViolation(f"item {item.id!r} lists a participant twice")
        missing = set(assigned) - known
        if missing:
            raise InvariantViolation(
                f"item {item.id!r} is assigned to unknown participants {sorted(missing)!r}"
            )
