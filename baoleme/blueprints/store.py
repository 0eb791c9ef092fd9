# baoleme/blueprints/store.py
from flask import Blueprint

from ..common.auth import ROLE_MERCHANT, ROLE_USER, current_id, login_required
from ..common.response import ok
from ..schemas import PageRequest, load
from ..schemas.store import (
    StoreCreateRequest, StoreIdRequest, StoreStatusRequest, StoreUpdateRequest,
    UserViewProductsRequest, UserViewStoresRequest,
)
from ..services.store_service import StoreService

bp = Blueprint("store", __name__)


@bp.post("/create")
@login_required(ROLE_MERCHANT)
def create():
    req = load(StoreCreateRequest)
    return ok(StoreService.create(current_id(), req.model_dump()))


@bp.post("/list")
@login_required(ROLE_MERCHANT)
def list_stores():
    req = load(PageRequest)
    return ok(StoreService.list_for_merchant(current_id(), req.page, req.page_size))


@bp.post("/view")
@login_required(ROLE_MERCHANT)
def view():
    req = load(StoreIdRequest)
    return ok(StoreService.view(current_id(), req.store_id))


@bp.put("/update")
@login_required(ROLE_MERCHANT)
def update():
    req = load(StoreUpdateRequest)
    return ok(StoreService.update(current_id(), req.model_dump()))


@bp.put("/status")
@login_required(ROLE_MERCHANT)
def status():
    req = load(StoreStatusRequest)
    return ok(StoreService.set_status(current_id(), req.store_id, req.status))


@bp.delete("/delete")
@login_required(ROLE_MERCHANT)
def delete():
    req = load(StoreIdRequest)
    StoreService.delete(current_id(), req.store_id)
    return ok()


@bp.post("/user-view-stores")
@login_required(ROLE_USER)
def user_view_stores():
    req = load(UserViewStoresRequest)
    return ok(StoreService.user_view_stores(req.type, req.page, req.page_size))


@bp.post("/user-view-products")
@login_required(ROLE_USER)
def user_view_products():
    req = load(UserViewProductsRequest)
    return ok(StoreService.store_products(req.store_id, req.category, req.page, req.page_size))


@bp.post("/storeInfo")
@login_required()
def store_info():
    req = load(StoreIdRequest)
    return ok(StoreService.store_info(req.store_id))
