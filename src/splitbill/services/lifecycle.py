from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from splitbill.db.models import Bill, BillCollection, IdFactory, new_id, utcnow


def new_bill(
    tax_rate: float = 0.0,
    service_rate: float = 0.0,
    id_factory: IdFactory = new_id,
    created_at: Optional[datetime] = None,
) -> Bill:
    return Bill(
        id=id_factory(),
        title="",
        created_at=created_at or utcnow(),
        tax_rate=tax_rate,
        service_rate=service_rate,
    )


def find_bill(collection: BillCollection, bill_id: Optional[str]) -> Optional[Bill]:
    if bill_id is None:
        return None
    return next((b for b in collection.bills if b.id == bill_id), None)


def active_bill(collection: BillCollection) -> Optional[Bill]:
    return find_bill(collection, collection.active_bill_id)


def create_bill(collection: BillCollection, bill: Bill) -> BillCollection:
    """Put ``bill`` at the head of the history and make it the active one."""
    return BillCollection(bills=(bill,) + collection.bills, active_bill_id=bill.id)


def delete_bill(collection: BillCollection, bill_id: str) -> BillCollection:
    if find_bill(collection, bill_id) is None:
        return collection
    active = None if collection.active_bill_id == bill_id else collection.active_bill_id
    return BillCollection(
        bills=tuple(b for b in collection.bills if b.id != bill_id),
        active_bill_id=active,
    )


def set_active_bill(collection: BillCollection, bill_id: Optional[str]) -> BillCollection:
    if collection.active_bill_id == bill_id:
        return collection
    return replace(collection, active_bill_id=bill_id)


def replace_bill(collection: BillCollection, bill: Bill) -> BillCollection:
    if find_bill(collection, bill.id) is None:
        return collection
    return replace(collection, bills=tuple(bill if b.id == bill.id else b for b in collection.bills))


def is_empty_bill(bill: Bill) -> bool:
    return bill.title.strip() == "" and not bill.items


def cleanup_empty_bills(collection: BillCollection) -> BillCollection:
    # The active pointer is left alone; a dangling id just resolves to no bill.
    kept = tuple(b for b in collection.bills if not is_empty_bill(b))
    if len(kept) == len(collection.bills):
        return collection
    return replace(collection, bills=kept)
