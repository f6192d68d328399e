"""
Wizard state.

Everything the reservation wizard collects between steps. The state lives in
the user's session as a plain dict (see utils/session_store.py) and is
rebuilt with WizardState.from_dict on each request.

Serialized shape:
    {
        "current_step": 1..5,
        "step1": {"<slot>": item | [items] | null, ..., "message": str},
        "step2": {"date", "postcode", "delivery_fee", "locality", "distance_km",
                  "customer_name", "customer_email", "customer_phone"},
        "step3": {"add_ons": [items]},
        "existing_reservation": {"id", "items", "optional_items", "add_ons", "image_url"} | null,
        "idempotency_key": str,
        "work_id": int,
        "submitted_reservation_id": int | null
    }
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any, Union

from blueprints.reserve.services.pricing_service import LineItem
from utils.helpers import generate_idempotency_key


FIRST_STEP = 1
LAST_STEP = 5


# =============================================================================
# SELECTIONS
# =============================================================================

@dataclass(frozen=True)
class SelectionItem:
    """A catalog item picked in the wizard (quantity is always 1)."""

    id: Optional[int]
    key: str
    title: str
    category: Optional[str]
    price: float
    image_url: Optional[str] = None

    @classmethod
    def from_catalog_row(cls, row: Dict[str, Any]) -> 'SelectionItem':
        return cls(
            id=row['id'],
            key=row['key'],
            title=row['name'],
            category=row.get('category_name'),
            price=row['base_price'],
            image_url=row.get('image_url'),
        )

    @classmethod
    def from_booked_line(cls, line: Dict[str, Any],
                         row: Optional[Dict[str, Any]] = None) -> 'SelectionItem':
        """Item already on a reservation, kept at its booked price."""
        row = row or {}
        return cls(
            id=row.get('id'),
            key=line['key'],
            title=row.get('name') or line['key'],
            category=row.get('category_name'),
            price=line['priceAtBooking'],
            image_url=row.get('image_url'),
        )

    def to_line_item(self) -> LineItem:
        return LineItem(key=self.key, quantity=1, price_at_booking=self.price)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectionItem':
        return cls(
            id=data['id'],
            key=data['key'],
            title=data['title'],
            category=data.get('category'),
            price=data['price'],
            image_url=data.get('image_url'),
        )


@dataclass(frozen=True)
class SingleSelection:
    """Slot holding at most one item. Picking the same item again clears it."""

    item: Optional[SelectionItem] = None

    mode = 'single'

    def toggle(self, item: SelectionItem) -> 'SingleSelection':
        if self.item is not None and self.item.key == item.key:
            return SingleSelection()
        return SingleSelection(item)

    def items(self) -> List[SelectionItem]:
        return [self.item] if self.item else []

    def is_empty(self) -> bool:
        return self.item is None

    def to_dict(self):
        return self.item.to_dict() if self.item else None


@dataclass(frozen=True)
class MultiSelection:
    """Slot holding any number of distinct items, toggled by key."""

    selected: tuple = ()

    mode = 'multi'

    def toggle(self, item: SelectionItem) -> 'MultiSelection':
        if any(existing.key == item.key for existing in self.selected):
            return MultiSelection(tuple(e for e in self.selected if e.key != item.key))
        return MultiSelection(self.selected + (item,))

    def items(self) -> List[SelectionItem]:
        return list(self.selected)

    def is_empty(self) -> bool:
        return not self.selected

    def to_dict(self):
        return [item.to_dict() for item in self.selected]


Selection = Union[SingleSelection, MultiSelection]


def empty_selection(mode: str) -> Selection:
    return MultiSelection() if mode == 'multi' else SingleSelection()


def selection_from_dict(data) -> Selection:
    if isinstance(data, list):
        return MultiSelection(tuple(SelectionItem.from_dict(d) for d in data))
    if data:
        return SingleSelection(SelectionItem.from_dict(data))
    return SingleSelection()


# =============================================================================
# STEP DATA
# =============================================================================

@dataclass
class Step1Data:
    selections: Dict[str, Selection] = field(default_factory=dict)
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        data = {slot: sel.to_dict() for slot, sel in self.selections.items()}
        data['message'] = self.message
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Step1Data':
        data = dict(data or {})
        message = data.pop('message', '') or ''
        return cls(
            selections={slot: selection_from_dict(value) for slot, value in data.items()},
            message=message,
        )


@dataclass
class Step2Data:
    date: Optional[str] = None
    postcode: Optional[str] = None
    delivery_fee: Optional[float] = None
    locality: Optional[str] = None
    distance_km: Optional[float] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.date) and self.delivery_fee is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Step2Data':
        data = data or {}
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})


@dataclass
class Step3Data:
    add_ons: List[SelectionItem] = field(default_factory=list)

    def toggle(self, item: SelectionItem) -> None:
        if any(a.key == item.key for a in self.add_ons):
            self.add_ons = [a for a in self.add_ons if a.key != item.key]
        else:
            self.add_ons.append(item)

    def to_dict(self) -> Dict[str, Any]:
        return {'add_ons': [item.to_dict() for item in self.add_ons]}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Step3Data':
        data = data or {}
        return cls(add_ons=[SelectionItem.from_dict(d) for d in data.get('add_ons', [])])


@dataclass
class ExistingReservation:
    """Snapshot of a stored reservation the wizard is continuing."""

    id: int
    items: List[Dict[str, Any]] = field(default_factory=list)
    optional_items: List[Dict[str, Any]] = field(default_factory=list)
    add_ons: List[Dict[str, Any]] = field(default_factory=list)
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExistingReservation':
        return cls(
            id=data['id'],
            items=list(data.get('items') or []),
            optional_items=list(data.get('optional_items') or []),
            add_ons=list(data.get('add_ons') or []),
            image_url=data.get('image_url'),
        )


# =============================================================================
# WIZARD STATE
# =============================================================================

@dataclass
class WizardState:
    current_step: int = FIRST_STEP
    step1: Step1Data = field(default_factory=Step1Data)
    step2: Step2Data = field(default_factory=Step2Data)
    step3: Step3Data = field(default_factory=Step3Data)
    existing_reservation: Optional[ExistingReservation] = None
    idempotency_key: str = ''
    work_id: int = 0
    submitted_reservation_id: Optional[int] = None

    @classmethod
    def new(cls, work_id: int = 0) -> 'WizardState':
        """Fresh state with its own submission key."""
        return cls(idempotency_key=generate_idempotency_key(), work_id=work_id)

    @property
    def is_existing(self) -> bool:
        return self.existing_reservation is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current_step': self.current_step,
            'step1': self.step1.to_dict(),
            'step2': self.step2.to_dict(),
            'step3': self.step3.to_dict(),
            'existing_reservation': (
                self.existing_reservation.to_dict() if self.existing_reservation else None
            ),
            'idempotency_key': self.idempotency_key,
            'work_id': self.work_id,
            'submitted_reservation_id': self.submitted_reservation_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WizardState':
        existing = data.get('existing_reservation')
        return cls(
            current_step=data.get('current_step', FIRST_STEP),
            step1=Step1Data.from_dict(data.get('step1')),
            step2=Step2Data.from_dict(data.get('step2')),
            step3=Step3Data.from_dict(data.get('step3')),
            existing_reservation=ExistingReservation.from_dict(existing) if existing else None,
            idempotency_key=data.get('idempotency_key') or generate_idempotency_key(),
            work_id=data.get('work_id', 0),
            submitted_reservation_id=data.get('submitted_reservation_id'),
        )
