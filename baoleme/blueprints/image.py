# baoleme/blueprints/image.py
from flask import Blueprint, current_app, request, send_from_directory

from ..common.auth import ROLE_MERCHANT, ROLE_RIDER, ROLE_USER, current_id, login_required
from ..common.errors import BusinessError, not_null
from ..common.response import ok
from ..services.image_service import ImageService

bp = Blueprint("image", __name__)
uploads_bp = Blueprint("uploads", __name__)


def _int_form(name: str, label: str) -> int:
    raw = (request.form.get(name) or "").strip()
    if not raw:
        raise BusinessError(not_null(label))
    return int(raw)


@bp.post("/upload-rider-avatar")
@login_required(ROLE_RIDER)
def upload_rider_avatar():
    return ok(ImageService.upload_avatar("rider", current_id(), request.files.get("file")))


@bp.post("/upload-merchant-avatar")
@login_required(ROLE_MERCHANT)
def upload_merchant_avatar():
    return ok(ImageService.upload_avatar("merchant", current_id(), request.files.get("file")))


@bp.post("/upload-user-avatar")
@login_required(ROLE_USER)
def upload_user_avatar():
    return ok(ImageService.upload_avatar("user", current_id(), request.files.get("file")))


@bp.post("/upload-store-image")
@login_required(ROLE_MERCHANT)
def upload_store_image():
    store_id = _int_form("store_id", "店铺ID")
    return ok(ImageService.upload_store_image(current_id(), store_id, request.files.get("file")))


@bp.post("/upload-product-image")
@login_required(ROLE_MERCHANT)
def upload_product_image():
    product_id = _int_form("product_id", "商品ID")
    return ok(ImageService.upload_product_image(current_id(), product_id, request.files.get("file")))


@uploads_bp.get("/<path:path>")
def serve_upload(path):
    return send_from_directory(current_app.config["UPLOAD_DIR"], path)
