# baoleme/services/store_service.py
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..common.errors import BusinessError, NotFoundError, PermissionDenied, not_exist, not_repeat
from ..common.response import page_payload
from ..models import db, Store, Product, Merchant, Sale, Review, User, Favorite, ViewHistory
from .serializers import store_to_dict, product_to_dict, review_to_dict

logger = logging.getLogger(__name__)

STORE_FIELDS = ("name", "description", "location", "type", "distance", "avg_price", "image")
PRODUCT_FIELDS = ("name", "price", "description", "category", "stock", "image")


class StoreService:

    @staticmethod
    def get(store_id) -> Store:
        store = db.session.get(Store, store_id)
        if store is None:
            raise NotFoundError(not_exist("店铺"))
        return store

    @staticmethod
    def validate_ownership(store_id, merchant_id) -> bool:
        store = db.session.get(Store, store_id)
        return store is not None and store.merchant_id == merchant_id

    @staticmethod
    def get_owned(store_id, merchant_id) -> Store:
        store = StoreService.get(store_id)
        if store.merchant_id != merchant_id:
            logger.warning("merchant %s tried to access store %s", merchant_id, store_id)
            raise PermissionDenied()
        return store

    @staticmethod
    def _check_name(name, exclude_id=None):
        q = Store.query.filter(Store.name == name)
        if exclude_id is not None:
            q = q.filter(Store.id != exclude_id)
        if q.first() is not None:
            raise BusinessError(not_repeat("店铺名"))

    @staticmethod
    def _commit():
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise BusinessError(not_repeat("店铺名"), code=409)

    @staticmethod
    def create(merchant_id, data: dict) -> dict:
        StoreService._check_name(data["name"])
        fields = {k: v for k, v in data.items() if k in STORE_FIELDS and v is not None}
        store = Store(merchant_id=merchant_id, status=Store.OPEN, **fields)
        db.session.add(store)
        StoreService._commit()
        logger.info("store %s created by merchant %s", store.id, merchant_id)
        return store_to_dict(store)

    @staticmethod
    def list_for_merchant(merchant_id, page, page_size) -> dict:
        q = Store.query.filter_by(merchant_id=merchant_id).order_by(Store.id.asc())
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        return page_payload(pag, [store_to_dict(s) for s in pag.items])

    @staticmethod
    def view(merchant_id, store_id) -> dict:
        return store_to_dict(StoreService.get_owned(store_id, merchant_id))

    @staticmethod
    def update(merchant_id, data: dict) -> dict:
        store = StoreService.get_owned(data["store_id"], merchant_id)
        if data.get("name") and data["name"] != store.name:
            StoreService._check_name(data["name"], exclude_id=store.id)
        for field in STORE_FIELDS:
            if data.get(field) is not None:
                setattr(store, field, data[field])
        StoreService._commit()
        return store_to_dict(store)

    @staticmethod
    def set_status(merchant_id, store_id, status) -> dict:
        store = StoreService.get_owned(store_id, merchant_id)
        store.status = status
        db.session.commit()
        logger.info("store %s status=%s", store_id, status)
        return {"id": store.id, "status": store.status}

    @staticmethod
    def delete(merchant_id, store_id):
        store = StoreService.get_owned(store_id, merchant_id)
        StoreService.remove(store)
        db.session.commit()
        logger.info("store %s deleted", store_id)

    @staticmethod
    def remove(store: Store):
        """Delete a store with its products and the rows pointing at it."""
        Favorite.query.filter_by(store_id=store.id).delete()
        ViewHistory.query.filter_by(store_id=store.id).delete()
        db.session.delete(store)

    # ---- customer side ----

    @staticmethod
    def user_view_stores(type_, page, page_size) -> dict:
        q = Store.query.filter(Store.status == Store.OPEN)
        if type_:
            q = q.filter(Store.type == type_)
        pag = q.order_by(Store.rating.desc(), Store.id.asc()).paginate(
            page=page, per_page=page_size, error_out=False
        )
        return page_payload(pag, [store_to_dict(s) for s in pag.items])

    @staticmethod
    def store_products(store_id, category, page, page_size) -> dict:
        StoreService.get(store_id)
        q = Product.query.filter(Product.store_id == store_id, Product.status == Product.ON_SALE)
        if category:
            q = q.filter(Product.category == category)
        pag = q.order_by(Product.id.asc()).paginate(page=page, per_page=page_size, error_out=False)
        return page_payload(pag, [product_to_dict(p) for p in pag.items])

    @staticmethod
    def store_info(store_id) -> dict:
        store = StoreService.get(store_id)
        merchant = db.session.get(Merchant, store.merchant_id)
        return {**store_to_dict(store), "merchant_phone": merchant.phone if merchant else None}


class ProductService:

    @staticmethod
    def get(product_id) -> Product:
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(not_exist("商品"))
        return product

    @staticmethod
    def get_owned(product_id, merchant_id) -> Product:
        product = ProductService.get(product_id)
        if not StoreService.validate_ownership(product.store_id, merchant_id):
            raise PermissionDenied()
        return product

    @staticmethod
    def create(merchant_id, data: dict) -> dict:
        StoreService.get_owned(data["store_id"], merchant_id)
        fields = {k: v for k, v in data.items() if k in PRODUCT_FIELDS and v is not None}
        product = Product(store_id=data["store_id"], status=Product.ON_SALE, **fields)
        db.session.add(product)
        db.session.commit()
        logger.info("product %s created in store %s", product.id, product.store_id)
        return product_to_dict(product)

    @staticmethod
    def view(product_id) -> dict:
        return product_to_dict(ProductService.get(product_id))

    @staticmethod
    def store_products(merchant_id, store_id, page, page_size) -> dict:
        StoreService.get_owned(store_id, merchant_id)
        volume = (
            db.session.query(Sale.product_id, func.coalesce(func.sum(Sale.quantity), 0).label("volume"))
            .filter(Sale.store_id == store_id)
            .group_by(Sale.product_id)
            .subquery()
        )
        q = (
            db.session.query(Product, func.coalesce(volume.c.volume, 0))
            .outerjoin(volume, volume.c.product_id == Product.id)
            .filter(Product.store_id == store_id)
            .order_by(Product.id.asc())
        )
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        return page_payload(pag, [{**product_to_dict(p), "volume": int(v or 0)} for p, v in pag.items])

    @staticmethod
    def update(merchant_id, data: dict) -> dict:
        product = ProductService.get_owned(data["product_id"], merchant_id)
        for field in PRODUCT_FIELDS:
            if data.get(field) is not None:
                setattr(product, field, data[field])
        db.session.commit()
        return product_to_dict(product)

    @staticmethod
    def set_status(merchant_id, product_id, status) -> dict:
        product = ProductService.get_owned(product_id, merchant_id)
        product.status = status
        db.session.commit()
        return {"id": product.id, "status": product.status}

    @staticmethod
    def delete(merchant_id, product_id):
        product = ProductService.get_owned(product_id, merchant_id)
        db.session.delete(product)
        db.session.commit()
        logger.info("product %s deleted", product_id)

    @staticmethod
    def product_info(product_id) -> dict:
        product = ProductService.get(product_id)
        rows = (
            db.session.query(Review, User.username)
            .outerjoin(User, User.id == Review.user_id)
            .filter(Review.product_id == product_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )
        return {**product_to_dict(product), "reviews": [review_to_dict(r, name) for r, name in rows]}
