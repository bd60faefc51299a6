import pytest
from fastapi.testclient import TestClient

from cheez import config, database
from cheez.main import app
from cheez.seed import seed


@pytest.fixture(autouse=True)
def store(tmp_path, monkeypatch):
    """Fresh seeded sqlite file per test."""
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'cheez-test.db'}")
    monkeypatch.setattr(config, "PASSWORD_ITERATIONS", 1000)
    database.close_connection()
    seed()
    yield
    database.close_connection()


def _client(username=None, password=None):
    client = TestClient(app)
    if username:
        resp = client.post("/api/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def anon():
    with _client() as client:
        yield client


@pytest.fixture
def admin():
    with _client("admin", "admin123") as client:
        yield client


@pytest.fixture
def customer():
    with _client("user", "password") as client:
        yield client


def stock_of(product_id):
    return database.query("SELECT stock FROM products WHERE id = ?", (product_id,), one=True)["stock"]


def count(table):
    return database.query(f"SELECT COUNT(*) AS n FROM {table}", one=True)["n"]


def order_payload(items=((1, 2, 45), (2, 1, 75)), **overrides):
    """Checkout body with totals computed the way the storefront does."""
    subtotal = sum(qty * price for _, qty, price in items)
    fee = 0 if subtotal >= 500 else 99
    payload = {
        "name": "Ahmed Khan",
        "phone": "0300-1234567",
        "address": "House 12, Street 4, Lahore",
        "instructions": "Ring the bell twice",
        "paymentMethod": "cash_on_delivery",
        "items": [{"productId": pid, "quantity": qty, "price": price} for pid, qty, price in items],
        "subtotal": subtotal,
        "deliveryFee": fee,
        "total": subtotal + fee,
    }
    payload.update(overrides)
    return payload
