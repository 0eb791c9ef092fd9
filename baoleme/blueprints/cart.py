# baoleme/blueprints/cart.py
from flask import Blueprint

from ..common.auth import ROLE_USER, current_id, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.order import CartAddRequest, CartDeleteRequest, CartUpdateRequest
from ..services.cart_service import CartService

bp = Blueprint("cart", __name__)


@bp.post("/add")
@login_required(ROLE_USER)
def add():
    req = load(CartAddRequest)
    CartService.add(current_id(), req.product_id, req.quantity)
    return ok()


@bp.get("/view")
@login_required(ROLE_USER)
def view():
    return ok(CartService.view(current_id()))


@bp.put("/update")
@login_required(ROLE_USER)
def update():
    req = load(CartUpdateRequest)
    CartService.update(current_id(), req.product_id, req.quantity)
    return ok()


@bp.put("/delete")
@login_required(ROLE_USER)
def delete():
    req = load(CartDeleteRequest)
    CartService.delete(current_id(), req.product_id)
    return ok()


@bp.delete("/remove")
@login_required(ROLE_USER)
def remove():
    CartService.clear(current_id())
    return ok()
