# baoleme/services/user_service.py
import logging
from datetime import datetime

from sqlalchemy import or_, update

from ..common import auth
from ..common.errors import BusinessError, NotFoundError, not_exist, not_null, not_repeat
from ..common.response import page_payload
from ..models import db, User, Store, Product, Favorite, Coupon, Review, ViewHistory, Cart
from .account_service import AccountService
from .serializers import user_to_dict, store_to_dict, product_to_dict, coupon_to_dict, review_to_dict, ts

logger = logging.getLogger(__name__)


def _apply_store_filters(q, filters: dict):
    if filters.get("type"):
        q = q.filter(Store.type == filters["type"])
    if filters.get("distance") is not None:
        q = q.filter(Store.distance <= filters["distance"])
    if filters.get("wish_price") is not None:
        q = q.filter(Store.avg_price <= filters["wish_price"])
    if filters.get("start_rating") is not None:
        q = q.filter(Store.rating >= filters["start_rating"])
    if filters.get("end_rating") is not None:
        q = q.filter(Store.rating <= filters["end_rating"])
    return q


class UserService(AccountService):
    model = User
    role = auth.ROLE_USER
    label = "用户"
    login_field = "phone"
    profile_fields = ("username", "phone", "description", "location", "gender", "avatar")

    @staticmethod
    def serialize(account):
        return user_to_dict(account)

    @classmethod
    def _on_delete(cls, account):
        Cart.query.filter_by(user_id=account.id).delete()
        Favorite.query.filter_by(user_id=account.id).delete()
        ViewHistory.query.filter_by(user_id=account.id).delete()

    # ---- favorites ----

    @staticmethod
    def _store(store_id) -> Store:
        store = db.session.get(Store, store_id)
        if store is None:
            raise NotFoundError(not_exist("店铺"))
        return store

    @staticmethod
    def favorite(user_id, store_id):
        UserService._store(store_id)
        if db.session.get(Favorite, (user_id, store_id)) is not None:
            raise BusinessError(not_repeat("收藏"))
        db.session.add(Favorite(user_id=user_id, store_id=store_id))
        db.session.commit()
        logger.info("user %s favorited store %s", user_id, store_id)

    @staticmethod
    def unfavorite(user_id, store_id):
        fav = db.session.get(Favorite, (user_id, store_id))
        if fav is None:
            raise NotFoundError(not_exist("收藏"))
        db.session.delete(fav)
        db.session.commit()

    @staticmethod
    def favorite_stores(user_id, filters: dict, page, page_size) -> dict:
        q = Store.query.join(Favorite, Favorite.store_id == Store.id).filter(Favorite.user_id == user_id)
        q = _apply_store_filters(q, filters).order_by(Favorite.created_at.desc(), Store.id.asc())
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        return page_payload(pag, [store_to_dict(s) for s in pag.items])

    # ---- search ----

    @staticmethod
    def search(keyword, filters: dict, page, page_size) -> dict:
        keyword = (keyword or "").strip()
        if not keyword:
            raise BusinessError(not_null("关键词"))
        like = f"%{keyword}%"
        q = Store.query.filter(
            Store.status == Store.OPEN,
            or_(Store.name.ilike(like), Store.description.ilike(like), Store.type.ilike(like)),
        )
        q = _apply_store_filters(q, filters).order_by(Store.rating.desc(), Store.id.asc())
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        items = []
        for store in pag.items:
            products = (
                Product.query.filter(
                    Product.store_id == store.id,
                    Product.status == Product.ON_SALE,
                    or_(Product.name.ilike(like), Product.description.ilike(like)),
                )
                .order_by(Product.id.asc())
                .all()
            )
            items.append({**store_to_dict(store), "products": [product_to_dict(p) for p in products]})
        return page_payload(pag, items)

    # ---- coupons ----

    @staticmethod
    def coupons(user_id, store_id):
        rows = (
            Coupon.query.filter(
                Coupon.user_id == user_id, Coupon.store_id == store_id, Coupon.is_used.is_(False)
            )
            .order_by(Coupon.expiration_date.asc())
            .all()
        )
        return [coupon_to_dict(c) for c in rows]

    @staticmethod
    def claimable_coupons(store_id):
        rows = (
            Coupon.query.filter(
                Coupon.user_id == Coupon.UNCLAIMED,
                Coupon.store_id == store_id,
                Coupon.expiration_date >= datetime.now(),
            )
            .order_by(Coupon.id.asc())
            .all()
        )
        return [coupon_to_dict(c) for c in rows]

    @staticmethod
    def claim_coupon(user_id, coupon_id) -> dict:
        coupon = db.session.get(Coupon, coupon_id)
        if coupon is None:
            raise NotFoundError(not_exist("优惠券"))
        if coupon.user_id != Coupon.UNCLAIMED:
            raise BusinessError("优惠券已被领取")
        if coupon.is_expired():
            raise BusinessError("优惠券已过期")
        claimed = db.session.execute(
            update(Coupon)
            .where(Coupon.id == coupon_id, Coupon.user_id == Coupon.UNCLAIMED)
            .values(user_id=user_id)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            db.session.rollback()
            raise BusinessError("优惠券已被领取")
        db.session.commit()
        logger.info("user %s claimed coupon %s", user_id, coupon_id)
        return coupon_to_dict(coupon)

    # ---- reviews ----

    @staticmethod
    def review(user_id, data: dict) -> dict:
        UserService._store(data["store_id"])
        if data.get("product_id") is not None:
            product = db.session.get(Product, data["product_id"])
            if product is None or product.store_id != data["store_id"]:
                raise NotFoundError(not_exist("商品"))
        review = Review(
            user_id=user_id,
            store_id=data["store_id"],
            product_id=data.get("product_id"),
            rating=data["rating"],
            comment=data.get("comment") or "",
            image=",".join(data.get("images") or []) or None,
        )
        db.session.add(review)
        db.session.commit()
        return review_to_dict(review)

    # ---- view history ----

    @staticmethod
    def record_view(user_id, store_id):
        UserService._store(store_id)
        entry = db.session.get(ViewHistory, (user_id, store_id))
        if entry is None:
            db.session.add(ViewHistory(user_id=user_id, store_id=store_id, view_time=datetime.now()))
        else:
            entry.view_time = datetime.now()
        db.session.commit()

    @staticmethod
    def view_history(user_id, page, page_size) -> dict:
        q = (
            db.session.query(ViewHistory, Store)
            .join(Store, Store.id == ViewHistory.store_id)
            .filter(ViewHistory.user_id == user_id)
            .order_by(ViewHistory.view_time.desc())
        )
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        items = [{**store_to_dict(s), "view_time": ts(v.view_time)} for v, s in pag.items]
        return page_payload(pag, items)
