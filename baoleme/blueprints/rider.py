# baoleme/blueprints/rider.py
from flask import Blueprint

from ..common.auth import ROLE_RIDER, current_id, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.account import (
    AccountLoginRequest, AccountRegisterRequest, AccountUpdateRequest, DispatchModeRequest,
)
from ..services.order_service import OrderService
from ..services.rider_service import RiderService

bp = Blueprint("rider", __name__)


@bp.post("/register")
def register():
    req = load(AccountRegisterRequest)
    return ok(RiderService.register(req.model_dump()))


@bp.post("/login")
def login():
    req = load(AccountLoginRequest)
    return ok(RiderService.login(req.username, req.password))


@bp.get("/info")
@login_required(ROLE_RIDER)
def info():
    return ok(RiderService.info(current_id()))


@bp.put("/update")
@login_required(ROLE_RIDER)
def update():
    req = load(AccountUpdateRequest)
    return ok(RiderService.update(current_id(), req.model_dump(exclude_none=True)))


@bp.patch("/dispatch-mode")
@login_required(ROLE_RIDER)
def dispatch_mode():
    req = load(DispatchModeRequest)
    return ok(RiderService.set_dispatch_mode(current_id(), req.dispatch_mode))


@bp.post("/logout")
@login_required(ROLE_RIDER)
def logout():
    RiderService.logout(current_id())
    return ok()


@bp.delete("/delete")
@login_required(ROLE_RIDER)
def delete():
    RiderService.delete(current_id())
    return ok()


@bp.post("/auto-order-taking")
@login_required(ROLE_RIDER)
def auto_order_taking():
    return ok(OrderService.random_dispatch(current_id()))
