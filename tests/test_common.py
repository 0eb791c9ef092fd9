"""
Tests for the response envelope, error handlers, config helpers and the
debug/health endpoints.
"""

import pytest
from flask import g
from pydantic import ValidationError

from baoleme.common.auth import current_id, current_role, current_username
from baoleme.common.errors import NO_PERMISSION, SERVER_ERROR, TOKEN_INVALID
from baoleme.common.response import fail, ok
from baoleme.config import _normalize_database_url, _parse_services
from baoleme.schemas import PageRequest
from baoleme.schemas.account import UserRegisterRequest
from baoleme.schemas.order import CartAddRequest, OrderCreateRequest
from baoleme.schemas.store import CouponCreateRequest

from .conftest import bearer


class TestEnvelope:

    def test_ok_wraps_data(self, app):
        with app.test_request_context():
            resp, status = ok({"a": 1})
        assert status == 200
        assert resp.get_json() == {"success": True, "code": 200, "message": "success", "data": {"a": 1}}

    def test_business_failure_travels_as_http_200(self, app):
        with app.test_request_context():
            resp, status = fail("店铺不存在")
        assert status == 200
        assert resp.get_json() == {"success": False, "code": 400, "message": "店铺不存在", "data": None}

    def test_other_codes_use_their_own_status(self, app):
        with app.test_request_context():
            _, status = fail(NO_PERMISSION, 403)
            _, forced = fail("bad input", http_status=400)
        assert status == 403
        assert forced == 400


class TestErrorHandlers:

    def test_missing_token_is_401(self, client):
        resp = client.get("/api/user/info")
        assert resp.status_code == 401
        assert resp.get_json() == {"code": 401, "message": TOKEN_INVALID}

    def test_forged_token_is_401(self, client):
        resp = client.get("/api/user/info", headers=bearer("not-a-jwt"))
        assert resp.status_code == 401

    def test_wrong_role_is_403(self, client, merchant_token):
        resp = client.get("/api/user/info", headers=bearer(merchant_token))
        assert resp.status_code == 403
        body = resp.get_json()
        assert body["success"] is False
        assert body["message"] == NO_PERMISSION

    def test_validation_error_is_400_with_label(self, client):
        resp = client.post("/api/merchant/register", json={"password": "secret123", "phone": "13900000001"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert "用户名不能为空" in body["message"]

    def test_unknown_route_uses_envelope(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == 404

    def test_unexpected_error_is_hidden(self, app, client):
        @app.get("/api/_boom")
        def _boom():
            raise RuntimeError("database exploded")

        resp = client.get("/api/_boom")
        assert resp.status_code == 500
        assert resp.get_json()["message"] == SERVER_ERROR


class TestCurrentAccount:

    def test_accessors_read_token_claims(self, app):
        with app.test_request_context():
            g.current_user = {"user_id": "7", "role": "rider", "username": "rider7"}
            assert current_id() == 7
            assert current_role() == "rider"
            assert current_username() == "rider7"

    def test_username_missing_from_claims(self, app):
        with app.test_request_context():
            g.current_user = {"user_id": 1, "role": "user"}
            assert current_username() is None


class TestSchemas:

    def test_required_field_message(self):
        with pytest.raises(ValidationError) as exc:
            UserRegisterRequest.model_validate({"username": "bob", "password": "secret123"})
        assert "手机号不能为空" in str(exc.value)

    def test_blank_string_counts_as_missing(self):
        with pytest.raises(ValidationError) as exc:
            UserRegisterRequest.model_validate({"username": "  ", "password": "secret123", "phone": "13900000009"})
        assert "用户名不能为空" in str(exc.value)

    @pytest.mark.parametrize("phone", ["12345", "23900000000", "1390000000a"])
    def test_phone_format(self, phone):
        with pytest.raises(ValidationError) as exc:
            UserRegisterRequest.model_validate({"username": "bob", "password": "secret123", "phone": phone})
        assert "手机号格式不正确" in str(exc.value)

    def test_page_is_clamped(self):
        req = PageRequest.model_validate({"page": 0, "page_size": 1000})
        assert req.page == 1
        assert req.page_size == 100

    def test_cart_quantity_must_be_positive(self):
        with pytest.raises(ValidationError) as exc:
            CartAddRequest.model_validate({"product_id": 1, "quantity": 0})
        assert "商品数量必须大于0" in str(exc.value)

    def test_order_needs_items(self):
        with pytest.raises(ValidationError) as exc:
            OrderCreateRequest.model_validate({"store_id": 1, "items": []})
        assert "商品列表不能为空" in str(exc.value)

    def test_full_reduction_coupon_bounds(self):
        with pytest.raises(ValidationError) as exc:
            CouponCreateRequest.model_validate({
                "store_id": 1, "type": 2, "full_amount": 10, "reduce_amount": 20,
                "expiration_date": "2099-01-01T00:00:00",
            })
        assert "减免金额不能大于满减门槛" in str(exc.value)


class TestConfig:

    def test_empty_url_falls_back_to_sqlite(self):
        assert _normalize_database_url("").startswith("sqlite:///")

    def test_postgres_scheme_is_rewritten_with_ssl(self):
        url = _normalize_database_url("postgres://u:p@db.example.com:5432/baoleme")
        assert url == "postgresql+psycopg://u:p@db.example.com:5432/baoleme?sslmode=require"

    def test_local_postgres_has_no_ssl(self):
        url = _normalize_database_url("postgresql://u:p@localhost/baoleme")
        assert url == "postgresql+psycopg://u:p@localhost/baoleme"

    def test_parse_services(self):
        services = _parse_services("user=http://a:8081/, broken , merchant = http://b:8082")
        assert services == {"user": "http://a:8081", "merchant": "http://b:8082"}


class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"

    def test_route_listing(self, client):
        rules = {r["rule"] for r in client.get("/api/_routes").get_json()}
        assert "/api/user/login" in rules
        assert "/api/orders/grab" in rules

    def test_full_health(self, client):
        data = client.get("/api/health/full").get_json()
        assert data["database"] == "sqlite"
        assert "orders" in data["blueprints"]
