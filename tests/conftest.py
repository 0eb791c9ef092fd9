import pytest

from baoleme.main import create_app
from baoleme.models import db
from baoleme.services.admin_service import AdminService

PASSWORD = "secret123"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "JWT_SECRET": "test-secret",
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "UPLOAD_BASE_URL": "/api/uploads",
        "GATEWAY_SERVICES": {"catalog": "http://catalog.test"},
        "DEBUG_ROUTES": True,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, role, identifier_field, identifier):
    resp = client.post(f"/api/{role}/login", json={identifier_field: identifier, "password": PASSWORD})
    body = resp.get_json()
    assert body["success"], body
    return body["data"]["token"]


@pytest.fixture
def merchant_token(client):
    client.post("/api/merchant/register", json={
        "username": "merchant1", "password": PASSWORD, "phone": "13900000001",
    })
    return _login(client, "merchant", "username", "merchant1")


@pytest.fixture
def other_merchant_token(client):
    client.post("/api/merchant/register", json={
        "username": "merchant2", "password": PASSWORD, "phone": "13900000011",
    })
    return _login(client, "merchant", "username", "merchant2")


@pytest.fixture
def user_token(client):
    client.post("/api/user/register", json={
        "username": "alice", "password": PASSWORD, "phone": "13900000002", "location": "Road 1",
    })
    return _login(client, "user", "phone", "13900000002")


@pytest.fixture
def rider_token(client):
    client.post("/api/rider/register", json={
        "username": "rider1", "password": PASSWORD, "phone": "13900000003",
    })
    return _login(client, "rider", "username", "rider1")


@pytest.fixture
def second_rider_token(client):
    client.post("/api/rider/register", json={
        "username": "rider2", "password": PASSWORD, "phone": "13900000004",
    })
    return _login(client, "rider", "username", "rider2")


@pytest.fixture
def admin_token(app, client):
    with app.app_context():
        admin_id = AdminService.create_admin(PASSWORD).id
    resp = client.post("/api/admin/login", json={"admin_id": admin_id, "password": PASSWORD})
    return resp.get_json()["data"]["token"]


@pytest.fixture
def shop(client, merchant_token):
    """A store with two products: noodles (price 10, stock 5) and dumplings (price 20, stock 2)."""
    store = client.post("/api/store/create", json={
        "name": "Noodle House", "description": "hand pulled noodles", "location": "Street 9",
        "type": "noodles", "distance": 1.5, "avg_price": 30,
    }, headers=bearer(merchant_token)).get_json()["data"]
    noodles = client.post("/api/product/create", json={
        "store_id": store["id"], "name": "Beef Noodles", "price": 10, "stock": 5, "category": "main",
    }, headers=bearer(merchant_token)).get_json()["data"]
    dumplings = client.post("/api/product/create", json={
        "store_id": store["id"], "name": "Dumplings", "price": 20, "stock": 2, "category": "snack",
    }, headers=bearer(merchant_token)).get_json()["data"]
    return {"store": store, "noodles": noodles, "dumplings": dumplings}


@pytest.fixture
def place_order(client, user_token, shop):
    def _place(items=None, **extra):
        payload = {
            "store_id": shop["store"]["id"],
            "items": items or [{"product_id": shop["noodles"]["id"], "quantity": 2}],
            "delivery_price": 5,
            **extra,
        }
        return client.post("/api/user/order", json=payload, headers=bearer(user_token)).get_json()
    return _place
