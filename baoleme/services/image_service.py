# baoleme/services/image_service.py
import logging
import os
import uuid
from datetime import date

from flask import current_app

from ..common.errors import BusinessError
from ..models import db, User, Merchant, Rider
from .store_service import StoreService, ProductService

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
KINDS = {"user", "merchant", "rider", "store", "product"}
EMPTY_FILE = "上传文件不能为空"

AVATAR_MODELS = {"user": User, "merchant": Merchant, "rider": Rider}


class ImageService:

    @staticmethod
    def url_for(relative_path: str) -> str:
        return f"{current_app.config['UPLOAD_BASE_URL']}/{relative_path}"

    @staticmethod
    def save(kind: str, file_storage) -> str:
        """
        Write an uploaded file to UPLOAD_DIR/<kind>/<yyyy-mm-dd>/<uuid><ext>
        and return the path relative to UPLOAD_DIR (always with '/').
        """
        if kind not in KINDS:
            raise ValueError(f"unknown upload kind {kind!r}")
        if file_storage is None or not file_storage.filename:
            raise BusinessError(EMPTY_FILE)
        ext = os.path.splitext(file_storage.filename)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise BusinessError("不支持的图片格式")

        day = date.today().isoformat()
        name = f"{uuid.uuid4().hex}{ext}"
        target = os.path.join(current_app.config["UPLOAD_DIR"], kind, day)
        os.makedirs(target, exist_ok=True)
        dest = os.path.join(target, name)
        file_storage.save(dest)
        if os.path.getsize(dest) == 0:
            os.remove(dest)
            raise BusinessError(EMPTY_FILE)
        relative = f"{kind}/{day}/{name}"
        logger.info("stored %s upload at %s", kind, relative)
        return relative

    @staticmethod
    def upload_avatar(role: str, account_id, file_storage) -> str:
        account = db.session.get(AVATAR_MODELS[role], account_id)
        if account is None:
            raise BusinessError("头像更新失败")
        relative = ImageService.save(role, file_storage)
        account.avatar = relative
        db.session.commit()
        return ImageService.url_for(relative)

    @staticmethod
    def upload_store_image(merchant_id, store_id, file_storage) -> str:
        store = StoreService.get_owned(store_id, merchant_id)
        relative = ImageService.save("store", file_storage)
        store.image = relative
        db.session.commit()
        return ImageService.url_for(relative)

    @staticmethod
    def upload_product_image(merchant_id, product_id, file_storage) -> str:
        product = ProductService.get_owned(product_id, merchant_id)
        relative = ImageService.save("product", file_storage)
        product.image = relative
        db.session.commit()
        return ImageService.url_for(relative)
