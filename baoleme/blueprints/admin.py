# baoleme/blueprints/admin.py
from flask import Blueprint

from ..common.auth import ROLE_ADMIN, current_id, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.account import AdminLoginRequest
from ..schemas.admin import (
    AdminDeleteRequest, AdminMerchantListRequest, AdminOrderListRequest, AdminProductListRequest,
    AdminReviewIdRequest, AdminReviewListRequest, AdminRiderListRequest, AdminSearchRequest,
    AdminStoreListRequest, AdminUserListRequest,
)
from ..schemas.order import OrderIdRequest
from ..services.admin_service import AdminService

bp = Blueprint("admin", __name__)

PAGING = {"page", "page_size"}


def _filters(req) -> dict:
    return req.model_dump(exclude=PAGING)


@bp.post("/login")
def login():
    req = load(AdminLoginRequest)
    return ok(AdminService.login(req.admin_id, req.password))


@bp.post("/logout")
@login_required(ROLE_ADMIN)
def logout():
    AdminService.logout(current_id())
    return ok()


@bp.post("/userlist")
@login_required(ROLE_ADMIN)
def user_list():
    req = load(AdminUserListRequest)
    return ok(AdminService.user_list(_filters(req), req.page, req.page_size))


@bp.post("/riderlist")
@login_required(ROLE_ADMIN)
def rider_list():
    req = load(AdminRiderListRequest)
    return ok(AdminService.rider_list(_filters(req), req.page, req.page_size))


@bp.post("/merchantlist")
@login_required(ROLE_ADMIN)
def merchant_list():
    req = load(AdminMerchantListRequest)
    return ok(AdminService.merchant_list(_filters(req), req.page, req.page_size))


@bp.post("/storelist")
@login_required(ROLE_ADMIN)
def store_list():
    req = load(AdminStoreListRequest)
    return ok(AdminService.store_list(_filters(req), req.page, req.page_size))


@bp.post("/productlist")
@login_required(ROLE_ADMIN)
def product_list():
    req = load(AdminProductListRequest)
    return ok(AdminService.product_list(_filters(req), req.page, req.page_size))


@bp.delete("/delete")
@login_required(ROLE_ADMIN)
def delete():
    req = load(AdminDeleteRequest)
    return ok(AdminService.delete(req.model_dump()))


@bp.post("/orderlist")
@login_required(ROLE_ADMIN)
def order_list():
    req = load(AdminOrderListRequest)
    return ok(AdminService.order_list(_filters(req), req.page, req.page_size))


@bp.post("/reviewlist")
@login_required(ROLE_ADMIN)
def review_list():
    req = load(AdminReviewListRequest)
    return ok(AdminService.review_list(_filters(req), req.page, req.page_size))


@bp.post("/search")
@login_required(ROLE_ADMIN)
def search():
    req = load(AdminSearchRequest)
    return ok(AdminService.search(req.keyword))


@bp.post("/search-order-by-id")
@login_required(ROLE_ADMIN)
def search_order_by_id():
    req = load(OrderIdRequest)
    return ok(AdminService.order_by_id(req.order_id))


@bp.post("/search-review-by-id")
@login_required(ROLE_ADMIN)
def search_review_by_id():
    req = load(AdminReviewIdRequest)
    return ok(AdminService.review_by_id(req.review_id))
