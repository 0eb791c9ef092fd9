# baoleme/services/admin_service.py
import logging
from collections import OrderedDict

from ..common import auth
from ..common.errors import BusinessError, NotFoundError, not_exist
from ..common.response import page_payload
from ..models import db, Admin, User, Rider, Merchant, Store, Product, Order, Review
from .account_service import MerchantService
from .order_service import _order_items
from .rider_service import RiderService
from .serializers import (
    user_to_dict, rider_to_dict, merchant_to_dict, store_to_dict, product_to_dict,
    order_to_dict, review_to_dict,
)
from .store_service import StoreService
from .user_service import UserService

logger = logging.getLogger(__name__)

ADMIN_LOGIN_FAILED = "ID或密码错误"


def _paginate(q, page, page_size, mapper) -> dict:
    pag = q.paginate(page=page, per_page=page_size, error_out=False)
    return page_payload(pag, [mapper(x) for x in pag.items])


class AdminService:

    # ---- session ----

    @staticmethod
    def create_admin(password: str) -> Admin:
        admin = Admin()
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        logger.info("admin %s created", admin.id)
        return admin

    @staticmethod
    def login(admin_id, password) -> dict:
        admin = db.session.get(Admin, admin_id)
        if admin is None or not admin.check_password(password):
            logger.warning("admin login failed for id=%s", admin_id)
            raise BusinessError(ADMIN_LOGIN_FAILED)
        token = auth.login_token(admin.id, auth.ROLE_ADMIN, f"admin{admin.id}")
        db.session.commit()
        logger.info("admin login id=%s", admin.id)
        return {"token": token, "id": admin.id}

    @staticmethod
    def logout(admin_id):
        auth.revoke_token(admin_id, auth.ROLE_ADMIN)
        db.session.commit()

    # ---- lists ----

    @staticmethod
    def user_list(f: dict, page, page_size) -> dict:
        q = User.query
        if f.get("keyword"):
            q = q.filter(User.username.ilike(f"%{f['keyword']}%"))
        if f.get("gender"):
            q = q.filter(User.gender == f["gender"])
        if f.get("start_id") is not None:
            q = q.filter(User.id >= f["start_id"])
        if f.get("end_id") is not None:
            q = q.filter(User.id <= f["end_id"])
        return _paginate(q.order_by(User.id.asc()), page, page_size, user_to_dict)

    @staticmethod
    def rider_list(f: dict, page, page_size) -> dict:
        q = Rider.query
        if f.get("keyword"):
            q = q.filter(Rider.username.ilike(f"%{f['keyword']}%"))
        if f.get("status") is not None:
            q = q.filter(Rider.order_status == f["status"])
        if f.get("dispatch_mode") is not None:
            q = q.filter(Rider.dispatch_mode == f["dispatch_mode"])
        if f.get("start_balance") is not None:
            q = q.filter(Rider.balance >= f["start_balance"])
        if f.get("end_balance") is not None:
            q = q.filter(Rider.balance <= f["end_balance"])
        return _paginate(q.order_by(Rider.id.asc()), page, page_size, rider_to_dict)

    @staticmethod
    def merchant_list(f: dict, page, page_size) -> dict:
        q = Merchant.query
        if f.get("keyword"):
            q = q.filter(Merchant.username.ilike(f"%{f['keyword']}%"))
        return _paginate(q.order_by(Merchant.id.asc()), page, page_size, merchant_to_dict)

    @staticmethod
    def store_list(f: dict, page, page_size) -> dict:
        q = Store.query
        if f.get("keyword"):
            q = q.filter(Store.name.ilike(f"%{f['keyword']}%"))
        if f.get("type"):
            q = q.filter(Store.type == f["type"])
        if f.get("status") is not None:
            q = q.filter(Store.status == f["status"])
        if f.get("start_rating") is not None:
            q = q.filter(Store.rating >= f["start_rating"])
        if f.get("end_rating") is not None:
            q = q.filter(Store.rating <= f["end_rating"])
        return _paginate(q.order_by(Store.id.asc()), page, page_size, store_to_dict)

    @staticmethod
    def product_list(f: dict, page, page_size) -> dict:
        q = Product.query
        if f.get("store_id") is not None:
            q = q.filter(Product.store_id == f["store_id"])
        if f.get("keyword"):
            q = q.filter(Product.name.ilike(f"%{f['keyword']}%"))
        if f.get("category"):
            q = q.filter(Product.category == f["category"])
        if f.get("status") is not None:
            q = q.filter(Product.status == f["status"])
        return _paginate(q.order_by(Product.id.asc()), page, page_size, product_to_dict)

    @staticmethod
    def order_list(f: dict, page, page_size) -> dict:
        q = Order.query
        for field in ("user_id", "store_id", "rider_id", "status"):
            if f.get(field) is not None:
                q = q.filter(getattr(Order, field) == f[field])
        if f.get("created_at") is not None:
            q = q.filter(Order.created_at >= f["created_at"])
        if f.get("ended_at") is not None:
            q = q.filter(Order.ended_at <= f["ended_at"])
        return _paginate(q.order_by(Order.id.desc()), page, page_size, order_to_dict)

    @staticmethod
    def review_list(f: dict, page, page_size) -> dict:
        q = Review.query
        for field in ("user_id", "store_id", "product_id"):
            if f.get(field) is not None:
                q = q.filter(getattr(Review, field) == f[field])
        if f.get("start_rating") is not None:
            q = q.filter(Review.rating >= f["start_rating"])
        if f.get("end_rating") is not None:
            q = q.filter(Review.rating <= f["end_rating"])
        if f.get("start_time") is not None:
            q = q.filter(Review.created_at >= f["start_time"])
        if f.get("end_time") is not None:
            q = q.filter(Review.created_at <= f["end_time"])
        return _paginate(q.order_by(Review.id.desc()), page, page_size, review_to_dict)

    # ---- delete by name ----

    @staticmethod
    def delete(f: dict) -> dict:
        """
        Delete whatever the request names. A product is addressed by
        store_name + product_name; store_name alone removes the store.
        Every target is looked up before anything is removed.
        """
        if f.get("product_name") and not f.get("store_name"):
            raise BusinessError("删除商品需要指定店铺名")

        targets = []
        for key, model, label, service in (
            ("user_name", User, "用户", UserService),
            ("rider_name", Rider, "骑手", RiderService),
            ("merchant_name", Merchant, "商家", MerchantService),
        ):
            if f.get(key):
                account = model.query.filter_by(username=f[key]).first()
                if account is None:
                    raise NotFoundError(not_exist(label))
                targets.append((service, account.id))

        store = product = None
        if f.get("store_name"):
            store = Store.query.filter_by(name=f["store_name"]).first()
            if store is None:
                raise NotFoundError(not_exist("店铺"))
            if f.get("product_name"):
                product = Product.query.filter_by(store_id=store.id, name=f["product_name"]).first()
                if product is None:
                    raise NotFoundError(not_exist("商品"))

        if not targets and store is None:
            raise BusinessError("请指定要删除的对象")

        deleted = [service.role for service, _ in targets]
        if product is not None:
            db.session.delete(product)
            deleted.append("product")
        elif store is not None:
            StoreService.remove(store)
            deleted.append("store")
        db.session.flush()
        for service, account_id in targets:
            service.delete(account_id)
        db.session.commit()
        logger.info("admin deleted %s", ",".join(deleted))
        return {"deleted": deleted}

    # ---- search ----

    @staticmethod
    def search(keyword: str) -> dict:
        like = f"%{keyword}%"
        stores = Store.query.filter(Store.name.ilike(like)).order_by(Store.id.asc()).all()
        rows = (
            db.session.query(Product, Store.name)
            .join(Store, Store.id == Product.store_id)
            .filter(Product.name.ilike(like))
            .order_by(Store.name.asc(), Product.id.asc())
            .all()
        )
        grouped = OrderedDict()
        for product, store_name in rows:
            grouped.setdefault(store_name, []).append(product_to_dict(product))
        return {
            "stores": [store_to_dict(s) for s in stores],
            "products": [{"store_name": name, "products": items} for name, items in grouped.items()],
        }

    @staticmethod
    def order_by_id(order_id) -> dict:
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFoundError(not_exist("订单"))
        return {**order_to_dict(order), "items": _order_items(order.id)}

    @staticmethod
    def review_by_id(review_id) -> dict:
        review = db.session.get(Review, review_id)
        if review is None:
            raise NotFoundError(not_exist("评价"))
        user = db.session.get(User, review.user_id)
        return review_to_dict(review, user.username if user else None)
