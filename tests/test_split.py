import pytest

from splitbill.db.models import Bill, LineItem, Participant
from splitbill.errors import InvariantViolation
from splitbill.services.split import calculate_bill, collection_stats, unassigned_subtotal


def _bill(items, tax_rate=10, service_rate=5, participants=None) -> Bill:
    return Bill(
        id="bill-1",
        title="Dinner",
        tax_rate=tax_rate,
        service_rate=service_rate,
        participants=participants or (Participant("a", "Ani"), Participant("b", "Budi")),
        items=tuple(items),
    )


def test_nasi_goreng_split_between_two():
    bill = _bill([LineItem("i1", "Nasi Goreng", 20000, 2, ("a", "b"))])

    summary = calculate_bill(bill)

    assert summary.bill_id == "bill-1"
    assert summary.subtotal == pytest.approx(40000)
    assert summary.total_tax == pytest.approx(4000)
    assert summary.total_service == pytest.approx(2000)
    assert summary.grand_total == pytest.approx(46000)
    for share in summary.shares:
        assert share.subtotal == pytest.approx(20000)
        assert share.tax_amount == pytest.approx(2000)
        assert share.service_amount == pytest.approx(1000)
        assert share.total_due == pytest.approx(23000)
        assert share.items_consumed[0].item_name == "Nasi Goreng"
        assert share.items_consumed[0].portion_quantity == pytest.approx(1)


def test_unassigned_item_counts_only_towards_bill_subtotal():
    bill = _bill([LineItem("i1", "Nasi Goreng", 20000, 2)])

    summary = calculate_bill(bill)

    assert summary.subtotal == pytest.approx(40000)
    assert summary.total_tax == 0
    assert summary.total_service == 0
    assert summary.grand_total == pytest.approx(40000)
    assert all(share.subtotal == 0 and not share.items_consumed for share in summary.shares)


def test_three_way_split_gives_fractional_quantity():
    participants = (Participant("a", "Ani"), Participant("b", "Budi"), Participant("c", "Citra"))
    bill = _bill([LineItem("i1", "Es Teh", 9000, 1, ("a", "b", "c"))], participants=participants)

    summary = calculate_bill(bill)

    for share in summary.shares:
        assert share.items_consumed[0].portion_quantity == pytest.approx(1 / 3)
        assert share.items_consumed[0].portion_price == pytest.approx(3000)


def test_shares_follow_participant_order_and_item_order():
    bill = _bill(
        [
            LineItem("i1", "Sate", 15000, 1, ("b",)),
            LineItem("i2", "Soto", 12000, 1, ("b", "a")),
        ]
    )

    summary = calculate_bill(bill)

    assert [s.participant_id for s in summary.shares] == ["a", "b"]
    assert [p.item_name for p in summary.shares[1].items_consumed] == ["Sate", "Soto"]


def test_grand_total_matches_shares_plus_unassigned():
    bill = _bill(
        [
            LineItem("i1", "Ayam Bakar", 33333.33, 3, ("a", "b")),
            LineItem("i2", "Kerupuk", 2500, 7),
            LineItem("i3", "Jus Alpukat", 18000.5, 1, ("a",)),
        ],
        tax_rate=11,
        service_rate=7.5,
    )

    summary = calculate_bill(bill)

    expected_subtotal = sum(item.price * item.quantity for item in bill.items)
    assert summary.subtotal == pytest.approx(expected_subtotal)
    assert summary.grand_total == pytest.approx(
        sum(s.total_due for s in summary.shares) + unassigned_subtotal(bill)
    )


def test_empty_bill():
    summary = calculate_bill(Bill(id="empty"))

    assert summary.shares == ()
    assert summary.grand_total == 0


def test_assignment_to_unknown_participant_fails_loudly():
    bill = _bill([LineItem("i1", "Bakso", 10000, 1, ("ghost",))])

    with pytest.raises(InvariantViolation):
        calculate_bill(bill)


def test_collection_stats():
    first = _bill([LineItem("i1", "Nasi Goreng", 20000, 2, ("a", "b"))])
    second = _bill([LineItem("i1", "Kopi", 5000, 1)], tax_rate=0, service_rate=0)

    stats = collection_stats([first, second])

    assert stats.count == 2
    assert stats.total == pytest.approx(51000)
