# baoleme/blueprints/merchant.py
from flask import Blueprint

from ..common.auth import ROLE_MERCHANT, current_id, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.account import AccountLoginRequest, AccountRegisterRequest, AccountUpdateRequest
from ..services.account_service import MerchantService

bp = Blueprint("merchant", __name__)


@bp.post("/register")
def register():
    req = load(AccountRegisterRequest)
    return ok(MerchantService.register(req.model_dump()))


@bp.post("/login")
def login():
    req = load(AccountLoginRequest)
    return ok(MerchantService.login(req.username, req.password))


@bp.get("/info")
@login_required(ROLE_MERCHANT)
def info():
    return ok(MerchantService.info(current_id()))


@bp.put("/update")
@login_required(ROLE_MERCHANT)
def update():
    req = load(AccountUpdateRequest)
    return ok(MerchantService.update(current_id(), req.model_dump(exclude_none=True)))


@bp.post("/logout")
@login_required(ROLE_MERCHANT)
def logout():
    MerchantService.logout(current_id())
    return ok()


@bp.delete("/delete")
@login_required(ROLE_MERCHANT)
def delete():
    MerchantService.delete(current_id())
    return ok()
