import pytest

from splitbill.config import Settings
from splitbill.db.models import Bill, BillCollection, LineItem
from splitbill.errors import BillValidationError, InvariantViolation, OwnerRemovalError
from splitbill.services.mutations import close_bill
from splitbill.state import BillStore


@pytest.fixture
def store(settings, id_factory) -> BillStore:
    return BillStore(settings=settings, id_factory=id_factory)


def test_create_bill_becomes_active_with_zero_rates(store):
    bill = store.create_bill()

    assert store.active_bill_id == bill.id
    assert store.active_bill() == bill
    assert (bill.title, bill.tax_rate, bill.service_rate) == ("", 0, 0)
    assert bill.participants == () and bill.items == ()
    assert bill.is_closed is False


def test_new_bills_go_to_the_head_of_history(store):
    first = store.create_bill()
    second = store.create_bill()

    assert [b.id for b in store.bills] == [second.id, first.id]


def test_create_bill_uses_configured_defaults(id_factory):
    store = BillStore(settings=Settings(DEFAULT_TAX_RATE=10, DEFAULT_SERVICE_RATE=5), id_factory=id_factory)
    bill = store.create_bill(owner_name="Host")

    assert (bill.tax_rate, bill.service_rate) == (10, 5)
    assert bill.owner is not None and bill.owner.name == "Host"


def test_delete_active_bill_clears_selection(store):
    first = store.create_bill()
    second = store.create_bill()

    store.delete_bill(second.id)
    assert store.active_bill_id is None
    assert [b.id for b in store.bills] == [first.id]

    store.set_active_bill(first.id)
    store.delete_bill("missing")
    assert store.active_bill_id == first.id


def test_set_active_bill_to_unknown_id_yields_no_active_bill(store):
    store.create_bill()
    store.set_active_bill("missing")

    assert store.active_bill() is None
    assert store.active_summary() is None
    assert store.add_participant("Ani") is None


def test_cleanup_empty_bills(store):
    empty = store.create_bill()
    titled = store.create_bill()
    store.set_info("Makan Malam", 0, 0)
    with_item = store.create_bill()
    store.set_info("   ", 0, 0)
    store.add_item("Kopi", 5000)

    removed = store.cleanup_empty_bills()

    assert removed == 1
    assert {b.id for b in store.bills} == {titled.id, with_item.id}
    assert store.get_bill(empty.id) is None


def test_full_editing_session(store):
    store.create_bill(owner_name="Host")
    store.set_info("Warung", 10, 5)
    store.add_participant("Ani")
    bill = store.add_item("Nasi Goreng", 20000, 2)
    host, ani = bill.participant_ids
    item_id = bill.items[0].id

    store.toggle_all(item_id, True)
    summary = store.active_summary()
    assert summary.grand_total == pytest.approx(46000)

    store.toggle_assignment(item_id, host)
    summary = store.active_summary()
    assert summary.share_for(ani).subtotal == pytest.approx(40000)
    assert summary.share_for(host).total_due == 0

    store.update_item(item_id, quantity=1)
    store.remove_participant(ani)
    summary = store.active_summary()
    assert summary.subtotal == pytest.approx(20000)
    assert summary.shares[0].participant_id == host
    assert summary.grand_total == pytest.approx(20000)

    store.remove_item(item_id)
    assert store.active_bill().items == ()


def test_owner_protection_follows_settings(id_factory):
    protected = BillStore(settings=Settings(PROTECT_OWNER=True), id_factory=id_factory)
    bill = protected.create_bill(owner_name="Host")
    with pytest.raises(OwnerRemovalError):
        protected.remove_participant(bill.owner.id)

    relaxed = BillStore(settings=Settings(PROTECT_OWNER=False), id_factory=id_factory)
    bill = relaxed.create_bill(owner_name="Host")
    assert relaxed.remove_participant(bill.owner.id).participants == ()


def test_validation_error_leaves_state_untouched(store):
    store.create_bill()
    before = store.snapshot()

    with pytest.raises(BillValidationError):
        store.add_item("Teh", 0)

    assert store.snapshot() is before


def test_subscribers_see_commits_but_not_noops(store):
    seen: list[BillCollection] = []
    unsubscribe = store.subscribe(seen.append)

    store.create_bill()
    store.remove_item("missing")
    store.add_participant("Ani")
    assert len(seen) == 2
    assert seen[-1] is store.snapshot()

    unsubscribe()
    store.add_participant("Budi")
    assert len(seen) == 2


def test_closed_bill_is_read_only(store):
    store.create_bill()
    closed = store.close_active_bill()

    assert closed.is_closed is True
    assert store.add_participant("Ani") is closed
    assert store.active_bill().participants == ()


def test_load_replaces_collection(store):
    bill = close_bill(Bill(id="old", title="Kemarin", items=(LineItem("i", "Kopi", 5000, 1),)))
    store.load(BillCollection(bills=(bill,), active_bill_id="old"))

    assert store.active_bill() == bill
    assert store.stats().total == pytest.approx(5000)


def test_bad_title_is_rejected_before_it_reaches_the_collection(store):
    store.create_bill()
    before = store.snapshot()

    with pytest.raises(BillValidationError):
        store.set_info(None, 0, 0)  # type: ignore[arg-type]

    assert store.snapshot() is before
    assert store.cleanup_empty_bills() == 1


def test_load_rejects_malformed_item(store):
    bill = Bill(id="bad", title="x", items=(LineItem("i", "Kopi", -5000, 1),))

    with pytest.raises(InvariantViolation):
        store.load(BillCollection(bills=(bill,)))

    assert store.bills == ()
