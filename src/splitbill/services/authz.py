from __future__ import annotations

from splitbill.db.models import Bill
from splitbill.errors import OwnerRemovalError


def is_bill_owner(bill: Bill, participant_id: str) -> bool:
    participant = bill.get_participant(participant_id)
    return participant is not None and participant.is_owner


def assert_removable(bill: Bill, participant_id: str, protect_owner: bool = True) -> None:
    if protect_owner and is_bill_owner(bill, participant_id):
        raise OwnerRemovalError("The bill owner cannot be removed from the bill.")
