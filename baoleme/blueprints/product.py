# baoleme/blueprints/product.py
from flask import Blueprint

from ..common.auth import ROLE_MERCHANT, current_id, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.store import (
    ProductCreateRequest, ProductIdRequest, ProductStatusRequest, ProductUpdateRequest,
    StorePageRequest,
)
from ..services.store_service import ProductService

bp = Blueprint("product", __name__)


@bp.post("/create")
@login_required(ROLE_MERCHANT)
def create():
    req = load(ProductCreateRequest)
    return ok(ProductService.create(current_id(), req.model_dump()))


@bp.post("/view")
@login_required()
def view():
    req = load(ProductIdRequest)
    return ok(ProductService.view(req.product_id))


@bp.post("/store-products")
@login_required(ROLE_MERCHANT)
def store_products():
    req = load(StorePageRequest)
    return ok(ProductService.store_products(current_id(), req.store_id, req.page, req.page_size))


@bp.put("/update")
@login_required(ROLE_MERCHANT)
def update():
    req = load(ProductUpdateRequest)
    return ok(ProductService.update(current_id(), req.model_dump()))


@bp.put("/status")
@login_required(ROLE_MERCHANT)
def status():
    req = load(ProductStatusRequest)
    return ok(ProductService.set_status(current_id(), req.product_id, req.status))


@bp.post("/delete")
@login_required(ROLE_MERCHANT)
def delete():
    req = load(ProductIdRequest)
    ProductService.delete(current_id(), req.product_id)
    return ok()


@bp.post("/productInfo")
@login_required()
def product_info():
    req = load(ProductIdRequest)
    return ok(ProductService.product_info(req.product_id))
