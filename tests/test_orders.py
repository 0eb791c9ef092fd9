"""
Tests for checkout, rider grabbing and delivery, merchant order handling
and the customer order views.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy import update

from baoleme.common.errors import BusinessError
from baoleme.models import db, Coupon, Order, Rider
from baoleme.services.order_service import MANUAL_DISPATCH, NO_IDLE_ORDER, ORDER_TAKEN
from baoleme.services.user_service import UserService

from .conftest import PASSWORD, bearer


def _coupon(client, merchant_token, user_token, store_id, **fields):
    payload = {"store_id": store_id, "expiration_date": "2099-12-31T23:59:59", **fields}
    coupon = client.post("/api/coupon/create", json=payload, headers=bearer(merchant_token)).get_json()["data"]
    client.post("/api/user/coupon/claim", json={"coupon_id": coupon["id"]}, headers=bearer(user_token))
    return coupon["id"]


def _stock(client, merchant_token, product_id):
    product = client.post("/api/product/view", json={"product_id": product_id}, headers=bearer(merchant_token))
    return product.get_json()["data"]["stock"]


def _rider_info(client, rider_token):
    return client.get("/api/rider/info", headers=bearer(rider_token)).get_json()["data"]


def _grab(client, rider_token, order_id):
    return client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))


def _rider_status(client, rider_token, order_id, target):
    return client.post("/api/orders/rider-update-status", json={"order_id": order_id, "target_status": target},
                       headers=bearer(rider_token))


def _merchant_status(client, merchant_token, order_id, new_status, **extra):
    return client.put("/api/orders/merchant-update", json={"id": order_id, "new_status": new_status, **extra},
                      headers=bearer(merchant_token)).get_json()


class TestCheckout:

    def test_order_prices_and_items(self, place_order, shop):
        body = place_order()
        assert body["success"] is True
        data = body["data"]
        assert data["total_price"] == 20.0
        assert data["delivery_price"] == 5.0
        assert data["actual_price"] == 25.0
        assert data["status"] == Order.WAITING
        assert data["store_name"] == "Noodle House"
        assert [(i["product_id"], i["quantity"]) for i in data["items"]] == [(shop["noodles"]["id"], 2)]

    def test_duplicate_lines_are_merged(self, place_order, shop):
        noodles = shop["noodles"]["id"]
        data = place_order(items=[
            {"product_id": noodles, "quantity": 1},
            {"product_id": noodles, "quantity": 2},
        ])["data"]
        assert data["items"][0]["quantity"] == 3
        assert data["total_price"] == 30.0

    def test_stock_and_sales_updated(self, client, merchant_token, place_order, shop):
        place_order()
        page = client.post("/api/product/store-products", json={"store_id": shop["store"]["id"]},
                           headers=bearer(merchant_token)).get_json()["data"]
        noodles = next(p for p in page["items"] if p["id"] == shop["noodles"]["id"])
        assert noodles["stock"] == 3
        assert noodles["volume"] == 2

    def test_insufficient_stock_rolls_back(self, client, merchant_token, place_order, shop):
        body = place_order(items=[
            {"product_id": shop["noodles"]["id"], "quantity": 1},
            {"product_id": shop["dumplings"]["id"], "quantity": 3},
        ])
        assert body["success"] is False
        assert body["message"] == "商品库存不足：Dumplings"
        noodles = client.post("/api/product/view", json={"product_id": shop["noodles"]["id"]},
                              headers=bearer(merchant_token)).get_json()["data"]
        assert noodles["stock"] == 5

    def test_off_sale_product_rejected(self, client, merchant_token, place_order, shop):
        client.put("/api/product/status", json={"product_id": shop["noodles"]["id"], "status": 0},
                   headers=bearer(merchant_token))
        assert place_order()["message"] == "商品已下架：Beef Noodles"

    def test_cart_cleared_after_checkout(self, client, user_token, place_order, shop):
        client.post("/api/cart/add", json={"product_id": shop["noodles"]["id"], "quantity": 2},
                    headers=bearer(user_token))
        place_order()
        cart = client.get("/api/cart/view", headers=bearer(user_token)).get_json()["data"]
        assert cart["items"] == []

    def test_full_reduction_coupon(self, client, merchant_token, user_token, place_order, shop):
        coupon_id = _coupon(client, merchant_token, user_token, shop["store"]["id"],
                            type=2, full_amount=15, reduce_amount=5)
        data = place_order(coupon_id=coupon_id)["data"]
        assert data["total_price"] == 20.0
        assert data["actual_price"] == 20.0
        reuse = place_order(coupon_id=coupon_id)
        assert reuse["message"] == "优惠券已使用或已过期"

    def test_discount_coupon(self, client, merchant_token, user_token, place_order, shop):
        coupon_id = _coupon(client, merchant_token, user_token, shop["store"]["id"], type=1, discount=0.8)
        assert place_order(coupon_id=coupon_id)["data"]["actual_price"] == 21.0

    def test_unclaimed_coupon_rejected(self, client, merchant_token, place_order, shop):
        coupon = client.post("/api/coupon/create", json={
            "store_id": shop["store"]["id"], "type": 1, "discount": 0.5,
            "expiration_date": "2099-12-31T23:59:59",
        }, headers=bearer(merchant_token)).get_json()["data"]
        assert place_order(coupon_id=coupon["id"])["message"] == "优惠券不可用于该订单"

    def test_product_from_other_store(self, client, merchant_token, place_order, shop):
        other = client.post("/api/store/create", json={"name": "Other"}, headers=bearer(merchant_token))
        foreign = client.post("/api/product/create", json={
            "store_id": other.get_json()["data"]["id"], "name": "Rice", "price": 3, "stock": 9,
        }, headers=bearer(merchant_token)).get_json()["data"]
        body = place_order(items=[{"product_id": foreign["id"], "quantity": 1}])
        assert body["message"] == f"商品不存在，ID: {foreign['id']}"

    def test_last_units_cannot_be_sold_twice(self, client, user_token, merchant_token, place_order, shop):
        noodles = shop["noodles"]["id"]
        assert place_order(items=[{"product_id": noodles, "quantity": 5}])["success"] is True
        body = place_order(items=[{"product_id": noodles, "quantity": 1}])
        assert body["message"] == "商品库存不足：Beef Noodles"
        assert _stock(client, merchant_token, noodles) == 0
        history = client.post("/api/user/history", json={}, headers=bearer(user_token)).get_json()["data"]
        assert history["total"] == 1


class TestCoupons:

    def test_claim_flow(self, client, merchant_token, user_token, shop):
        store_id = shop["store"]["id"]
        coupon = client.post("/api/coupon/create", json={
            "store_id": store_id, "type": 2, "full_amount": 30, "reduce_amount": 5,
            "expiration_date": "2099-12-31T23:59:59",
        }, headers=bearer(merchant_token)).get_json()["data"]
        claimable = client.post("/api/user/coupon/view", json={"store_id": store_id},
                                headers=bearer(user_token)).get_json()["data"]
        assert [c["id"] for c in claimable] == [coupon["id"]]

        client.post("/api/user/coupon/claim", json={"coupon_id": coupon["id"]}, headers=bearer(user_token))
        mine = client.post("/api/user/coupon", json={"store_id": store_id}, headers=bearer(user_token))
        assert [c["id"] for c in mine.get_json()["data"]] == [coupon["id"]]
        again = client.post("/api/user/coupon/claim", json={"coupon_id": coupon["id"]}, headers=bearer(user_token))
        assert again.get_json()["message"] == "优惠券已被领取"

    def test_expired_coupon_cannot_be_claimed(self, client, merchant_token, user_token, shop):
        coupon = client.post("/api/coupon/create", json={
            "store_id": shop["store"]["id"], "type": 1, "discount": 0.9,
            "expiration_date": "2001-01-01T00:00:00",
        }, headers=bearer(merchant_token)).get_json()["data"]
        resp = client.post("/api/user/coupon/claim", json={"coupon_id": coupon["id"]}, headers=bearer(user_token))
        assert resp.get_json()["message"] == "优惠券已过期"

    def test_claim_lost_to_another_user(self, app, client, merchant_token, shop):
        coupon = client.post("/api/coupon/create", json={
            "store_id": shop["store"]["id"], "type": 1, "discount": 0.9,
            "expiration_date": "2099-12-31T23:59:59",
        }, headers=bearer(merchant_token)).get_json()["data"]
        with app.app_context():
            db.session.execute(update(Coupon).where(Coupon.id == coupon["id"]).values(user_id=999))
            db.session.commit()
            # the row as a slower request read it, before the other claim landed
            stale = Coupon(id=coupon["id"], store_id=shop["store"]["id"], user_id=Coupon.UNCLAIMED,
                           expiration_date=datetime(2099, 12, 31), is_used=False)
            with patch.object(db.session, "get", return_value=stale), pytest.raises(BusinessError) as err:
                UserService.claim_coupon(1, coupon["id"])
            assert err.value.message == "优惠券已被领取"
            assert db.session.get(Coupon, coupon["id"]).user_id == 999


class TestRiderFlow:

    def test_available_lists_waiting_orders(self, client, rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        page = client.get("/api/orders/available?page=1&page_size=5",
                          headers=bearer(rider_token)).get_json()["data"]
        assert [o["order_id"] for o in page["items"]] == [order_id]
        assert page["items"][0]["store_name"] == "Noodle House"
        assert page["page_size"] == 5

    def test_only_one_rider_wins(self, client, rider_token, second_rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        first = client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))
        assert first.get_json()["data"]["status"] == Order.ACCEPTED
        second = client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(second_rider_token))
        assert second.get_json()["message"] == ORDER_TAKEN
        info = client.get("/api/rider/info", headers=bearer(rider_token)).get_json()["data"]
        assert info["order_status"] == Rider.BUSY
        page = client.get("/api/orders/available", headers=bearer(second_rider_token)).get_json()["data"]
        assert page["total"] == 0

    def test_cancel_returns_order_to_pool(self, client, rider_token, second_rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))
        other = client.put("/api/orders/cancel", json={"order_id": order_id}, headers=bearer(second_rider_token))
        assert other.get_json()["message"] == "订单无法取消"
        resp = client.put("/api/orders/cancel", json={"order_id": order_id}, headers=bearer(rider_token))
        assert resp.get_json()["data"]["status"] == Order.WAITING
        info = client.get("/api/rider/info", headers=bearer(rider_token)).get_json()["data"]
        assert info["order_status"] == Rider.IDLE
        regrab = client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(second_rider_token))
        assert regrab.get_json()["success"] is True

    def test_delivery_and_earnings(self, client, rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))

        skip = client.post("/api/orders/rider-update-status", json={"order_id": order_id, "target_status": 3},
                           headers=bearer(rider_token))
        assert skip.get_json()["success"] is False

        client.post("/api/orders/rider-update-status", json={"order_id": order_id, "target_status": 2},
                    headers=bearer(rider_token))
        done = client.post("/api/orders/rider-update-status", json={"order_id": order_id, "target_status": 3},
                           headers=bearer(rider_token)).get_json()["data"]
        assert done["status"] == Order.COMPLETED
        assert done["ended_at"] is not None

        earnings = client.get("/api/orders/rider-earnings", headers=bearer(rider_token)).get_json()["data"]
        assert earnings == {"completed_orders": 1, "total_earnings": 5.0, "current_month": 5.0}
        info = client.get("/api/rider/info", headers=bearer(rider_token)).get_json()["data"]
        assert info["balance"] == 5.0
        assert info["order_status"] == Rider.IDLE

        history = client.post("/api/orders/rider-history-query", json={"status": 3},
                              headers=bearer(rider_token)).get_json()["data"]
        assert [o["id"] for o in history["items"]] == [order_id]

    def test_status_update_by_stranger(self, client, rider_token, second_rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))
        resp = client.post("/api/orders/rider-update-status", json={"order_id": order_id, "target_status": 2},
                           headers=bearer(second_rider_token))
        assert resp.status_code == 403

    def test_invalid_target_status(self, client, rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        resp = client.post("/api/orders/rider-update-status", json={"order_id": order_id, "target_status": 1},
                           headers=bearer(rider_token))
        assert resp.status_code == 400

    def test_random_dispatch(self, client, rider_token, place_order):
        empty = client.post("/api/rider/auto-order-taking", headers=bearer(rider_token))
        assert empty.get_json()["message"] == NO_IDLE_ORDER
        order_id = place_order()["data"]["order_id"]
        data = client.post("/api/rider/auto-order-taking", headers=bearer(rider_token)).get_json()["data"]
        assert data["order_id"] == order_id

    def test_manual_riders_do_not_auto_take(self, client, rider_token, place_order):
        place_order()
        client.patch("/api/rider/dispatch-mode", json={"dispatch_mode": 0}, headers=bearer(rider_token))
        resp = client.post("/api/rider/auto-order-taking", headers=bearer(rider_token))
        assert resp.get_json()["message"] == MANUAL_DISPATCH

    def test_deleted_rider_releases_orders(self, client, rider_token, second_rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))
        client.delete("/api/rider/delete", headers=bearer(rider_token))
        page = client.get("/api/orders/available", headers=bearer(second_rider_token)).get_json()["data"]
        assert [o["order_id"] for o in page["items"]] == [order_id]

    def test_rider_with_another_open_order_stays_busy(self, client, rider_token, place_order):
        first = place_order()["data"]["order_id"]
        second = place_order()["data"]["order_id"]
        _grab(client, rider_token, first)
        _grab(client, rider_token, second)

        client.put("/api/orders/cancel", json={"order_id": first}, headers=bearer(rider_token))
        assert _rider_info(client, rider_token)["order_status"] == Rider.BUSY
        client.put("/api/orders/cancel", json={"order_id": second}, headers=bearer(rider_token))
        assert _rider_info(client, rider_token)["order_status"] == Rider.IDLE

    def test_completion_with_another_open_order(self, client, rider_token, place_order):
        first = place_order()["data"]["order_id"]
        second = place_order()["data"]["order_id"]
        _grab(client, rider_token, first)
        _grab(client, rider_token, second)
        _rider_status(client, rider_token, first, 2)
        _rider_status(client, rider_token, first, 3)
        info = _rider_info(client, rider_token)
        assert info["order_status"] == Rider.BUSY
        assert info["balance"] == 5.0


class TestMerchantOrders:

    def test_list_with_items(self, client, merchant_token, place_order, shop):
        order_id = place_order()["data"]["order_id"]
        page = client.post("/api/orders/merchant-list", json={"store_id": shop["store"]["id"], "status": 0},
                           headers=bearer(merchant_token)).get_json()["data"]
        assert page["items"][0]["id"] == order_id
        assert page["items"][0]["items"][0]["product_name"] == "Beef Noodles"

    def test_cancel_needs_reason(self, client, merchant_token, place_order):
        order_id = place_order()["data"]["order_id"]
        missing = client.put("/api/orders/merchant-update", json={"id": order_id, "new_status": 4},
                             headers=bearer(merchant_token))
        assert missing.get_json()["message"] == "取消订单必须填写原因"

        data = client.put("/api/orders/merchant-update",
                          json={"id": order_id, "new_status": 4, "cancel_reason": "sold out"},
                          headers=bearer(merchant_token)).get_json()["data"]
        assert data["status"] == Order.CANCELLED
        assert data["cancel_reason"] == "sold out"

        closed = client.put("/api/orders/merchant-update", json={"id": order_id, "new_status": 1},
                            headers=bearer(merchant_token))
        assert closed.get_json()["message"] == "订单已结束，无法修改"

    def test_foreign_merchant(self, client, other_merchant_token, place_order):
        order_id = place_order()["data"]["order_id"]
        resp = client.put("/api/orders/merchant-update", json={"id": order_id, "new_status": 1},
                          headers=bearer(other_merchant_token))
        assert resp.status_code == 403

    def test_back_to_waiting_unassigns_rider(self, client, merchant_token, rider_token, second_rider_token,
                                             place_order):
        order_id = place_order()["data"]["order_id"]
        _grab(client, rider_token, order_id)
        data = _merchant_status(client, merchant_token, order_id, 0)["data"]
        assert data["status"] == Order.WAITING
        assert _rider_info(client, rider_token)["order_status"] == Rider.IDLE

        page = client.get("/api/orders/available", headers=bearer(second_rider_token)).get_json()["data"]
        assert [o["order_id"] for o in page["items"]] == [order_id]
        assert _grab(client, second_rider_token, order_id).get_json()["success"] is True

    @pytest.mark.parametrize("new_status", [1, 2, 3])
    def test_waiting_order_cannot_skip_ahead(self, client, merchant_token, place_order, new_status):
        order_id = place_order()["data"]["order_id"]
        body = _merchant_status(client, merchant_token, order_id, new_status)
        assert body["message"] == f"订单状态无法从0变更为{new_status}"

    def test_complete_delivering_order(self, app, client, merchant_token, rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        _grab(client, rider_token, order_id)
        early = _merchant_status(client, merchant_token, order_id, 3)
        assert early["message"] == "订单状态无法从1变更为3"

        _rider_status(client, rider_token, order_id, 2)
        data = _merchant_status(client, merchant_token, order_id, 3)["data"]
        assert data["status"] == Order.COMPLETED
        info = _rider_info(client, rider_token)
        assert info["balance"] == 5.0
        assert info["order_status"] == Rider.IDLE
        with app.app_context():
            assert db.session.get(Order, order_id).ended_at is not None

    def test_cancel_restores_stock_and_sales(self, client, merchant_token, rider_token, place_order, shop):
        order_id = place_order()["data"]["order_id"]
        _grab(client, rider_token, order_id)
        assert _stock(client, merchant_token, shop["noodles"]["id"]) == 3

        _merchant_status(client, merchant_token, order_id, 4, cancel_reason="kitchen closed")
        assert _stock(client, merchant_token, shop["noodles"]["id"]) == 5
        assert _rider_info(client, rider_token)["order_status"] == Rider.IDLE
        overview = client.post("/api/stats-store/overview",
                               json={"store_id": shop["store"]["id"], "time_range": "THIS_MONTH"},
                               headers=bearer(merchant_token)).get_json()["data"]
        assert overview == {"total_sales": 0.0, "order_count": 0, "popular_products": []}


class TestCustomerOrders:

    def test_history_and_current(self, client, user_token, rider_token, place_order):
        order_id = place_order()["data"]["order_id"]
        client.put("/api/orders/grab", json={"order_id": order_id}, headers=bearer(rider_token))
        page = client.post("/api/user/history", json={}, headers=bearer(user_token)).get_json()["data"]
        entry = page["items"][0]
        assert entry["store_name"] == "Noodle House"
        assert entry["rider_name"] == "rider1"
        assert entry["rider_phone"] == "13900000003"
        current = client.post("/api/user/current", headers=bearer(user_token)).get_json()["data"]
        assert [o["id"] for o in current] == [order_id]

    def test_order_detail_and_items(self, client, user_token, place_order):
        order_id = place_order()["data"]["order_id"]
        detail = client.post("/api/user/searchOrder", json={"order_id": order_id},
                             headers=bearer(user_token)).get_json()["data"]
        assert detail["phone"] == "13900000001"
        items = client.post("/api/user/searchOrderItem", json={"order_id": order_id},
                            headers=bearer(user_token)).get_json()["data"]
        assert items[0]["quantity"] == 2
        summary = client.post("/api/user/history/item", json={"order_id": order_id},
                              headers=bearer(user_token)).get_json()["data"]
        assert summary["actual_price"] == 25.0

    def test_other_users_order_is_forbidden(self, client, place_order):
        order_id = place_order()["data"]["order_id"]
        client.post("/api/user/register", json={"username": "bob", "password": PASSWORD, "phone": "13911111111"})
        token = client.post("/api/user/login", json={"phone": "13911111111", "password": PASSWORD}).get_json()
        resp = client.post("/api/user/searchOrder", json={"order_id": order_id},
                           headers=bearer(token["data"]["token"]))
        assert resp.status_code == 403
