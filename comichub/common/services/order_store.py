"""Order persistence.

``OrderStore`` is the boundary between the order services and durable state.
``SqlAlchemyOrderStore`` is the production implementation; ``InMemoryOrderStore``
implements the same interface for tests.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from ..db.session import SessionFactory
from ..models.base import utcnow
from ..models.order import Order
from ..models.order_item import OrderItem
from ..models.user import User
from .errors import DanglingReferenceError, OrderNotFound, StoreUnavailable
from .logging import log_event
from .order_status import INITIAL_STATUS, OrderStatus, parse_status


@dataclass(frozen=True)
class NewOrderItem:
    """A validated line as submitted at checkout."""

    title: str
    price: Decimal
    quantity: int
    product_id: Optional[int] = None
    image_url: Optional[str] = None
    is_custom: bool = False
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrderItemRecord:
    id: int
    title: str
    price: Decimal
    quantity: int
    product_id: Optional[int] = None
    image_url: Optional[str] = None
    is_custom: bool = False
    notes: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class OrderRecord:
    id: int
    user_id: int
    customer_name: str
    items: Tuple[OrderItemRecord, ...]
    total_price: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    custom_image_url: Optional[str] = None
    notes: Optional[str] = None
    payment_reference: Optional[str] = None

    @property
    def has_custom_items(self) -> bool:
        return any(item.is_custom for item in self.items)


def _first_custom(items: Sequence[NewOrderItem]) -> Optional[NewOrderItem]:
    return next((it for it in items if it.is_custom), None)


class OrderStore(ABC):
    @abstractmethod
    def user_exists(self, user_id: int) -> bool:
        ...

    @abstractmethod
    def create(
        self,
        *,
        user_id: int,
        customer_name: str,
        items: Sequence[NewOrderItem],
        total_price: Decimal,
    ) -> OrderRecord:
        """Persist an order and all of its items atomically, status Pending.

        Raises DanglingReferenceError when ``user_id`` has no user row.
        """

    @abstractmethod
    def get(self, order_id: int) -> Optional[OrderRecord]:
        ...

    @abstractmethod
    def list(self, *, user_id: Optional[int] = None, custom_only: bool = False) -> List[OrderRecord]:
        """Orders newest first (created_at, then id, descending)."""

    @abstractmethod
    def update_status(self, order_id: int, status: OrderStatus) -> OrderRecord:
        """Write ``status`` and nothing else. Only OrderStatusMachine calls this."""

    @abstractmethod
    def set_payment_reference(self, order_id: int, reference: str) -> OrderRecord:
        ...


def _to_record(row: Order) -> OrderRecord:
    return OrderRecord(
        id=row.id,
        user_id=row.user_id,
        customer_name=row.customer_name,
        items=tuple(
            OrderItemRecord(
                id=it.id,
                title=it.title,
                price=Decimal(str(it.price)),
                quantity=int(it.quantity),
                product_id=it.product_id,
                image_url=it.image_url,
                is_custom=bool(it.is_custom),
                notes=it.notes,
            )
            for it in row.items
        ),
        total_price=Decimal(str(row.total_price)),
        status=parse_status(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        custom_image_url=row.custom_image_url,
        notes=row.notes,
        payment_reference=row.payment_reference,
    )


class SqlAlchemyOrderStore(OrderStore):
    """Order store backed by the relational database."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator:
        try:
            with self._session_factory() as session:
                yield session
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            log_event("error", "store.unavailable", error=str(exc))
            raise StoreUnavailable("Order store is unavailable, retry later") from exc

    def user_exists(self, user_id: int) -> bool:
        with self._session() as session:
            return session.get(User, user_id) is not None

    def create(self, *, user_id, customer_name, items, total_price) -> OrderRecord:
        custom = _first_custom(items)
        try:
            with self._session() as session:
                if session.get(User, user_id) is None:
                    raise DanglingReferenceError(f"User {user_id} does not exist")
                now = utcnow()
                order = Order(
                    user_id=user_id,
                    customer_name=customer_name,
                    total_price=total_price,
                    status=INITIAL_STATUS.value,
                    custom_image_url=custom.image_url if custom else None,
                    notes=custom.notes if custom else None,
                    created_at=now,
                    updated_at=now,
                )
                order.items = [
                    OrderItem(
                        position=pos,
                        product_id=it.product_id,
                        title=it.title,
                        price=it.price,
                        quantity=it.quantity,
                        image_url=it.image_url,
                        is_custom=it.is_custom,
                        notes=it.notes,
                    )
                    for pos, it in enumerate(items)
                ]
                session.add(order)
                session.flush()
                return _to_record(order)
        except IntegrityError as exc:
            # FK enforced by the engine (e.g. user deleted concurrently)
            raise DanglingReferenceError(f"User {user_id} does not exist") from exc

    def get(self, order_id: int) -> Optional[OrderRecord]:
        with self._session() as session:
            row = session.get(Order, order_id)
            return _to_record(row) if row else None

    def list(self, *, user_id=None, custom_only=False) -> List[OrderRecord]:
        with self._session() as session:
            q = session.query(Order)
            if user_id is not None:
                q = q.filter(Order.user_id == user_id)
            if custom_only:
                q = q.filter(Order.items.any(OrderItem.is_custom.is_(True)))
            rows = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
            return [_to_record(r) for r in rows]

    def update_status(self, order_id: int, status: OrderStatus) -> OrderRecord:
        with self._session() as session:
            row = session.get(Order, order_id)
            if row is None:
                raise OrderNotFound(order_id)
            row.status = status.value
            row.updated_at = utcnow()
            session.flush()
            return _to_record(row)

    def set_payment_reference(self, order_id: int, reference: str) -> OrderRecord:
        with self._session() as session:
            row = session.get(Order, order_id)
            if row is None:
                raise OrderNotFound(order_id)
            row.payment_reference = reference
            session.flush()
            return _to_record(row)


@dataclass
class InMemoryOrderStore(OrderStore):
    """Process-local store with the same contract, for tests."""

    users: Set[int] = field(default_factory=set)
    available: bool = True
    _orders: Dict[int, OrderRecord] = field(default_factory=dict)
    _next_order_id: int = 1
    _next_item_id: int = 1
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def add_user(self, user_id: int) -> None:
        self.users.add(user_id)

    def _check_available(self) -> None:
        if not self.available:
            raise StoreUnavailable("Order store is unavailable, retry later")

    def user_exists(self, user_id: int) -> bool:
        self._check_available()
        return user_id in self.users

    def create(self, *, user_id, customer_name, items, total_price) -> OrderRecord:
        self._check_available()
        if user_id not in self.users:
            raise DanglingReferenceError(f"User {user_id} does not exist")
        custom = _first_custom(items)
        with self._lock:
            records = []
            for it in items:
                records.append(
                    OrderItemRecord(
                        id=self._next_item_id,
                        title=it.title,
                        price=it.price,
                        quantity=it.quantity,
                        product_id=it.product_id,
                        image_url=it.image_url,
                        is_custom=it.is_custom,
                        notes=it.notes,
                    )
                )
                self._next_item_id += 1
            now = utcnow()
            order = OrderRecord(
                id=self._next_order_id,
                user_id=user_id,
                customer_name=customer_name,
                items=tuple(records),
                total_price=total_price,
                status=INITIAL_STATUS,
                created_at=now,
                updated_at=now,
                custom_image_url=custom.image_url if custom else None,
                notes=custom.notes if custom else None,
            )
            self._orders[order.id] = order
            self._next_order_id += 1
            return order

    def get(self, order_id: int) -> Optional[OrderRecord]:
        self._check_available()
        return self._orders.get(order_id)

    def list(self, *, user_id=None, custom_only=False) -> List[OrderRecord]:
        self._check_available()
        rows = [
            o
            for o in self._orders.values()
            if (user_id is None or o.user_id == user_id) and (not custom_only or o.has_custom_items)
        ]
        return sorted(rows, key=lambda o: (o.created_at, o.id), reverse=True)

    def update_status(self, order_id: int, status: OrderStatus) -> OrderRecord:
        self._check_available()
        with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                raise OrderNotFound(order_id)
            updated = replace(current, status=status, updated_at=utcnow())
            self._orders[order_id] = updated
            return updated

    def set_payment_reference(self, order_id: int, reference: str) -> OrderRecord:
        self._check_available()
        with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                raise OrderNotFound(order_id)
            updated = replace(current, payment_reference=reference)
            self._orders[order_id] = updated
            return updated
