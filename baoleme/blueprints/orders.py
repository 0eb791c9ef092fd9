# baoleme/blueprints/orders.py
from flask import Blueprint

from ..common.auth import ROLE_MERCHANT, ROLE_RIDER, current_id, login_required
from ..common.response import ok
from ..schemas import PageRequest, load, load_args
from ..schemas.order import (
    MerchantOrderListRequest, MerchantOrderUpdateRequest, OrderHistoryRequest, OrderIdRequest,
    RiderStatusUpdateRequest,
)
from ..services.order_service import OrderService

bp = Blueprint("orders", __name__)


@bp.get("/available")
@login_required(ROLE_RIDER)
def available():
    req = load_args(PageRequest)
    return ok(OrderService.available(req.page, req.page_size))


@bp.put("/grab")
@login_required(ROLE_RIDER)
def grab():
    req = load(OrderIdRequest)
    return ok(OrderService.grab(current_id(), req.order_id))


@bp.put("/cancel")
@login_required(ROLE_RIDER)
def cancel():
    req = load(OrderIdRequest)
    return ok(OrderService.rider_cancel(current_id(), req.order_id))


@bp.post("/rider-update-status")
@login_required(ROLE_RIDER)
def rider_update_status():
    req = load(RiderStatusUpdateRequest)
    return ok(OrderService.rider_update_status(current_id(), req.order_id, req.target_status))


@bp.post("/rider-history-query")
@login_required(ROLE_RIDER)
def rider_history():
    req = load(OrderHistoryRequest)
    return ok(OrderService.rider_history(
        current_id(), req.status, req.start_time, req.end_time, req.page, req.page_size
    ))


@bp.get("/rider-earnings")
@login_required(ROLE_RIDER)
def rider_earnings():
    return ok(OrderService.rider_earnings(current_id()))


@bp.put("/merchant-update")
@login_required(ROLE_MERCHANT)
def merchant_update():
    req = load(MerchantOrderUpdateRequest)
    return ok(OrderService.merchant_update(current_id(), req.id, req.new_status, req.cancel_reason))


@bp.post("/merchant-list")
@login_required(ROLE_MERCHANT)
def merchant_list():
    req = load(MerchantOrderListRequest)
    return ok(OrderService.merchant_list(current_id(), req.store_id, req.status, req.page, req.page_size))
