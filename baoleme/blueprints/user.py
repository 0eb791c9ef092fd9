# baoleme/blueprints/user.py
from flask import Blueprint

from ..common.auth import ROLE_USER, current_id, login_required
from ..common.response import ok
from ..schemas import PageRequest, load
from ..schemas.account import UserLoginRequest, UserRegisterRequest, UserUpdateRequest
from ..schemas.order import OrderCreateRequest, OrderHistoryRequest, OrderIdRequest
from ..schemas.store import ReviewCreateRequest
from ..schemas.user import (
    CouponClaimRequest, CouponQueryRequest, FavoriteRequest, SearchRequest,
    StoreFilterRequest, ViewHistoryRecordRequest,
)
from ..services.order_service import OrderService
from ..services.user_service import UserService

bp = Blueprint("user", __name__)

FILTER_FIELDS = ("type", "distance", "wish_price", "start_rating", "end_rating")


# ---- account ----

@bp.post("/register")
def register():
    req = load(UserRegisterRequest)
    return ok(UserService.register(req.model_dump()))


@bp.post("/login")
def login():
    req = load(UserLoginRequest)
    return ok(UserService.login(req.phone, req.password))


@bp.post("/logout")
@login_required(ROLE_USER)
def logout():
    UserService.logout(current_id())
    return ok()


@bp.get("/info")
@login_required(ROLE_USER)
def info():
    return ok(UserService.info(current_id()))


@bp.put("/update")
@login_required(ROLE_USER)
def update():
    req = load(UserUpdateRequest)
    return ok(UserService.update(current_id(), req.model_dump(exclude_none=True)))


@bp.delete("/delete")
@login_required(ROLE_USER)
def delete():
    UserService.delete(current_id())
    return ok()


@bp.delete("/cancel")
@login_required(ROLE_USER)
def cancel_account():
    UserService.delete(current_id())
    return ok()


# ---- orders ----

@bp.post("/history")
@login_required(ROLE_USER)
def history():
    req = load(OrderHistoryRequest)
    return ok(OrderService.user_history(
        current_id(), req.status, req.start_time, req.end_time, req.page, req.page_size
    ))


@bp.post("/history/item")
@login_required(ROLE_USER)
def history_item():
    req = load(OrderIdRequest)
    return ok(OrderService.user_order_items(current_id(), req.order_id))


@bp.post("/current")
@login_required(ROLE_USER)
def current_orders():
    return ok(OrderService.current_orders(current_id()))


@bp.post("/order")
@login_required(ROLE_USER)
def create_order():
    req = load(OrderCreateRequest)
    return ok(OrderService.create(current_id(), req.model_dump()))


@bp.post("/searchOrder")
@login_required(ROLE_USER)
def search_order():
    req = load(OrderIdRequest)
    return ok(OrderService.user_order_detail(current_id(), req.order_id))


@bp.post("/searchOrderItem")
@login_required(ROLE_USER)
def search_order_item():
    req = load(OrderIdRequest)
    return ok(OrderService.user_order_items(current_id(), req.order_id)["items"])


# ---- favorites / search ----

@bp.post("/favorite")
@login_required(ROLE_USER)
def favorite():
    req = load(FavoriteRequest)
    UserService.favorite(current_id(), req.store_id)
    return ok()


@bp.post("/favorite/watch")
@login_required(ROLE_USER)
def favorite_watch():
    req = load(StoreFilterRequest)
    filters = req.model_dump(include=set(FILTER_FIELDS))
    return ok(UserService.favorite_stores(current_id(), filters, req.page, req.page_size))


@bp.post("/deleteFavorite")
@login_required(ROLE_USER)
def delete_favorite():
    req = load(FavoriteRequest)
    UserService.unfavorite(current_id(), req.store_id)
    return ok()


@bp.post("/search")
@login_required(ROLE_USER)
def search():
    req = load(SearchRequest)
    filters = req.model_dump(include=set(FILTER_FIELDS))
    return ok(UserService.search(req.keyword, filters, req.page, req.page_size))


# ---- coupons ----

@bp.post("/coupon")
@login_required(ROLE_USER)
def coupons():
    req = load(CouponQueryRequest)
    return ok(UserService.coupons(current_id(), req.store_id))


@bp.post("/coupon/view")
@login_required(ROLE_USER)
def coupon_view():
    req = load(CouponQueryRequest)
    return ok(UserService.claimable_coupons(req.store_id))


@bp.post("/coupon/claim")
@login_required(ROLE_USER)
def coupon_claim():
    req = load(CouponClaimRequest)
    return ok(UserService.claim_coupon(current_id(), req.coupon_id))


# ---- reviews / view history ----

@bp.post("/review")
@login_required(ROLE_USER)
def review():
    req = load(ReviewCreateRequest)
    return ok(UserService.review(current_id(), req.model_dump()))


@bp.post("/updateViewHistory")
@login_required(ROLE_USER)
def update_view_history():
    req = load(ViewHistoryRecordRequest)
    UserService.record_view(current_id(), req.store_id)
    return ok()


@bp.post("/viewHistory")
@login_required(ROLE_USER)
def view_history():
    req = load(PageRequest)
    return ok(UserService.view_history(current_id(), req.page, req.page_size))
