from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional


IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _whole_quantity(value: Any) -> int:
    quantity = float(value)
    if not quantity.is_integer():
        raise ValueError(f"quantity must be a whole number, got {value!r}")
    return int(quantity)


@dataclass(slots=True, frozen=True)
class Participant:
    id: str
    name: str
    is_owner: bool = False

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "isOwner": self.is_owner}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Participant:
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            is_owner=bool(record.get("isOwner", False)),
        )


@dataclass(slots=True, frozen=True)
class LineItem:
    id: str
    name: str
    price: float
    quantity: int = 1
    assigned_to_participant_ids: tuple[str, ...] = ()

    @property
    def total(self) -> float:
        return self.price * self.quantity

    def is_assigned_to(self, participant_id: str) -> bool:
        return participant_id in self.assigned_to_participant_ids

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "assignedToParticipantIds": list(self.assigned_to_participant_ids),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> LineItem:
        # dict.fromkeys keeps first-seen order and drops repeats
        assigned = tuple(dict.fromkeys(str(pid) for pid in record.get("assignedToParticipantIds", ())))
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            price=float(record["price"]),
            quantity=_whole_quantity(record.get("quantity", 1)),
            assigned_to_participant_ids=assigned,
        )


@dataclass(slots=True, frozen=True)
class Bill:
    id: str
    title: str = ""
    created_at: datetime = field(default_factory=utcnow)
    tax_rate: float = 0.0
    service_rate: float = 0.0
    # Reserved; not used by the calculator.
    discount: float = 0.0
    participants: tuple[Participant, ...] = ()
    items: tuple[LineItem, ...] = ()
    is_closed: bool = False

    @property
    def participant_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.participants)

    @property
    def owner(self) -> Optional[Participant]:
        return next((p for p in self.participants if p.is_owner), None)

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == participant_id), None)

    def get_item(self, item_id: str) -> Optional[LineItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at.isoformat(),
            "taxRate": self.tax_rate,
            "serviceRate": self.service_rate,
            "discount": self.discount,
            "participants": [p.to_record() for p in self.participants],
            "items": [i.to_record() for i in self.items],
            "isClosed": self.is_closed,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Bill:
        created_at = datetime.fromisoformat(str(record["createdAt"]).replace("Z", "+00:00"))
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=str(record["id"]),
            title=str(record.get("title", "")),
            created_at=created_at,
            tax_rate=float(record.get("taxRate", 0)),
            service_rate=float(record.get("serviceRate", 0)),
            discount=float(record.get("discount", 0)),
            participants=tuple(Participant.from_record(p) for p in record.get("participants", ())),
            items=tuple(LineItem.from_record(i) for i in record.get("items", ())),
            is_closed=bool(record.get("isClosed", False)),
        )


@dataclass(slots=True, frozen=True)
class BillCollection:
    """Everything a persistence collaborator loads and saves as one unit."""

    bills: tuple[Bill, ...] = ()
    active_bill_id: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "bills": [b.to_record() for b in self.bills],
            "activeBillId": self.active_bill_id,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> BillCollection:
        active = record.get("activeBillId")
        return cls(
            bills=tuple(Bill.from_record(b) for b in record.get("bills", ())),
            active_bill_id=str(active) if active is not None else None,
        )


@dataclass(slots=True, frozen=True)
class ConsumedPortion:
    item_name: str
    portion_price: float
    portion_quantity: float

    def to_record(self) -> dict[str, Any]:
        return {
            "itemName": self.item_name,
            "portionPrice": self.portion_price,
            "portionQuantity": self.portion_quantity,
        }


@dataclass(slots=True, frozen=True)
class ParticipantShare:
    participant_id: str
    participant_name: str
    subtotal: float
    tax_amount: float
    service_amount: float
    total_due: float
    items_consumed: tuple[ConsumedPortion, ...] = ()

    def to_record(self) -> dict[str, Any]:
        return {
            "participantId": self.participant_id,
            "participantName": self.participant_name,
            "subtotal": self.subtotal,
            "taxAmount": self.tax_amount,
            "serviceAmount": self.service_amount,
            "totalDue": self.total_due,
            "itemsConsumed": [c.to_record() for c in self.items_consumed],
        }


@dataclass(slots=True, frozen=True)
class BillSummary:
    bill_id: str
    subtotal: float
    total_tax: float
    total_service: float
    grand_total: float
    shares: tuple[ParticipantShare, ...] = ()

    def share_for(self, participant_id: str) -> Optional[ParticipantShare]:
        return next((s for s in self.shares if s.participant_id == participant_id), None)

    def to_record(self) -> dict[str, Any]:
        return {
            "billId": self.bill_id,
            "subtotal": self.subtotal,
            "totalTax": self.total_tax,
            "totalService": self.total_service,
            "grandTotal": self.grand_total,
            "shares": [s.to_record() for s in self.shares],
        }
