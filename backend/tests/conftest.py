"""
Shared fixtures: an in-memory SQLite database, the in-memory order service,
a recording kitchen notifier and a TestClient wired to all three.
"""
import os

# Settings are read at import time
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from podhouse.core.db import make_engine
from podhouse.core.deps import get_db, get_kitchen_notifier, get_order_service
from podhouse.core.security import create_access_token, get_password_hash
from podhouse.core.store import InMemoryOrderStore
from podhouse.main import app
from podhouse.models.db import Base, Seat, User
from podhouse.models.schemas import Order
from podhouse.services.order_client import InMemoryOrderService
from podhouse.services.seat_inventory import SeatInventory

LOCATION = "loc-1"


class RecordingNotifier:
    """Kitchen notifier that remembers every call; can be told to fail."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], int | None]] = []
        self.fail = False

    def notify_group_seated(self, group_code: str, seat_ids: list[str], seating_option: int | None) -> None:
        if self.fail:
            raise RuntimeError("kitchen webhook down")
        self.calls.append((group_code, list(seat_ids), seating_option))


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def orders() -> InMemoryOrderService:
    return InMemoryOrderService(InMemoryOrderStore())


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def inventory(db) -> SeatInventory:
    return SeatInventory(db)


@pytest.fixture
def make_seat(inventory) -> Callable[..., Seat]:
    """Create a pod; ``col`` is its grid column, which drives group placement."""

    def _make(number: str, col: int | None = None, row: int | None = 1, location_id: str = LOCATION) -> Seat:
        return inventory.create_seat(
            location_id,
            number,
            qr_code=f"POD-{location_id}-{number}",
            grid_row=row,
            grid_col=col,
        )

    return _make


@pytest.fixture
def make_order(orders) -> Callable[..., Order]:
    def _make(order_id: str, total_cents: int = 1000, location_id: str = LOCATION, **fields) -> Order:
        return orders.add(
            Order(
                id=order_id,
                order_number=f"ORD-{order_id}",
                location_id=location_id,
                total_cents=total_cents,
                **fields,
            )
        )

    return _make


@pytest.fixture
def client(session_factory, orders, notifier) -> Generator[TestClient, None, None]:
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_order_service] = lambda: orders
    app.dependency_overrides[get_kitchen_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def _token_for(db: Session, username: str, role: str, location_id: str | None) -> str:
    user = User(
        username=username,
        password_hash=get_password_hash("secret"),
        role=role,
        location_id=location_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return create_access_token(subject=str(user.id), role=role, location_id=location_id)


@pytest.fixture
def staff_headers(db) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token_for(db, 'staff', 'staff', LOCATION)}"}


@pytest.fixture
def other_location_headers(db) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token_for(db, 'elsewhere', 'location_admin', 'loc-2')}"}
