"""In-memory owner of the bill history and the active-bill pointer."""

from __future__ import annotations

from typing import Callable, Optional

from splitbill.config import Settings, get_settings
from splitbill.db.models import Bill, BillCollection, BillSummary, IdFactory, new_id
from splitbill.logging import get_logger
from splitbill.services import lifecycle, mutations
from splitbill.services.split import CollectionStats, calculate_bill, collection_stats

Listener = Callable[[BillCollection], None]


class BillStore:
    def __init__(
        self,
        collection: Optional[BillCollection] = None,
        settings: Optional[Settings] = None,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._collection = collection or BillCollection()
        self._settings = settings or get_settings()
        self._id_factory = id_factory
        self._listeners: list[Listener] = []
        self._log = get_logger(__name__)

    # --- observers ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, collection: BillCollection) -> None:
        if collection is self._collection:
            return
        self._collection = collection
        for listener in list(self._listeners):
            listener(collection)

    # --- reads ---

    @property
    def bills(self) -> tuple[Bill, ...]:
        return self._collection.bills

    @property
    def active_bill_id(self) -> Optional[str]:
        return self._collection.active_bill_id

    def snapshot(self) -> BillCollection:
        return self._collection

    def load(self, collection: BillCollection) -> None:
        for bill in collection.bills:
            mutations.check_invariants(bill)
        self._log.info("store.load", bills=len(collection.bills))
        self._commit(collection)

    def get_bill(self, bill_id: str) -> Optional[Bill]:
        return lifecycle.find_bill(self._collection, bill_id)

    def active_bill(self) -> Optional[Bill]:
        return lifecycle.active_bill(self._collection)

    def active_summary(self) -> Optional[BillSummary]:
        bill = self.active_bill()
        if bill is None:
            return None
        return calculate_bill(bill)

    def summary(self, bill_id: str) -> Optional[BillSummary]:
        bill = self.get_bill(bill_id)
        return calculate_bill(bill) if bill is not None else None

    def stats(self) -> CollectionStats:
        return collection_stats(self._collection.bills)

    # --- collection lifecycle ---

    def create_bill(self, owner_name: Optional[str] = None) -> Bill:
        bill = lifecycle.new_bill(
            tax_rate=self._settings.default_tax_rate,
            service_rate=self._settings.default_service_rate,
            id_factory=self._id_factory,
        )
        if owner_name is not None:
            bill = mutations.add_owner(bill, owner_name, id_factory=self._id_factory)
        self._log.info("bill.create", bill_id=bill.id)
        self._commit(lifecycle.create_bill(self._collection, bill))
        return bill

    def delete_bill(self, bill_id: str) -> None:
        collection = lifecycle.delete_bill(self._collection, bill_id)
        if collection is not self._collection:
            self._log.info("bill.delete", bill_id=bill_id)
        self._commit(collection)

    def set_active_bill(self, bill_id: Optional[str]) -> None:
        self._commit(lifecycle.set_active_bill(self._collection, bill_id))

    def cleanup_empty_bills(self) -> int:
        collection = lifecycle.cleanup_empty_bills(self._collection)
        removed = len(self._collection.bills) - len(collection.bills)
        if removed:
            self._log.info("bill.cleanup", removed=removed)
        self._commit(collection)
        return removed

    # --- edits of the active bill ---

    def _edit_active(self, edit: Callable[[Bill], Bill]) -> Optional[Bill]:
        bill = self.active_bill()
        if bill is None:
            return None
        if bill.is_closed:
            self._log.warning("bill.closed", bill_id=bill.id)
            return bill
        updated = edit(bill)
        if updated is not bill:
            mutations.check_invariants(updated)
            self._commit(lifecycle.replace_bill(self._collection, updated))
        return updated

    def set_info(self, title: str, tax_rate: float, service_rate: float) -> Optional[Bill]:
        return self._edit_active(lambda b: mutations.set_info(b, title, tax_rate, service_rate))

    def add_participant(self, name: str) -> Optional[Bill]:
        return self._edit_active(
            lambda b: mutations.add_participant(b, name, id_factory=self._id_factory)
        )

    def remove_participant(self, participant_id: str) -> Optional[Bill]:
        return self._edit_active(
            lambda b: mutations.remove_participant(
                b, participant_id, protect_owner=self._settings.protect_owner
            )
        )

    def add_item(self, name: str, price: float, quantity: int = 1) -> Optional[Bill]:
        return self._edit_active(
            lambda b: mutations.add_item(b, name, price, quantity, id_factory=self._id_factory)
        )

    def update_item(
        self,
        item_id: str,
        name: Optional[str] = None,
        price: Optional[float] = None,
        quantity: Optional[int] = None,
    ) -> Optional[Bill]:
        return self._edit_active(
            lambda b: mutations.update_item(b, item_id, name=name, price=price, quantity=quantity)
        )

    def remove_item(self, item_id: str) -> Optional[Bill]:
        return self._edit_active(lambda b: mutations.remove_item(b, item_id))

    def toggle_assignment(self, item_id: str, participant_id: str) -> Optional[Bill]:
        return self._edit_active(lambda b: mutations.toggle_assignment(b, item_id, participant_id))

    def toggle_all(self, item_id: str, select_all: bool) -> Optional[Bill]:
        return self._edit_active(lambda b: mutations.toggle_all(b, item_id, select_all))

    def close_active_bill(self) -> Optional[Bill]:
        return self._edit_active(mutations.close_bill)
