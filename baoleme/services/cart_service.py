# baoleme/services/cart_service.py
import logging
from decimal import Decimal

from ..common.errors import BusinessError, NotFoundError, not_exist
from ..models import db, Cart, Product
from .serializers import money

logger = logging.getLogger(__name__)


class CartService:
    """Shopping cart keyed by (user, product)."""

    @staticmethod
    def add(user_id, product_id, quantity):
        if quantity <= 0:
            raise BusinessError("商品数量必须大于0")
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(not_exist("商品"))
        item = db.session.get(Cart, (user_id, product_id))
        if item is None:
            db.session.add(Cart(user_id=user_id, product_id=product_id, quantity=quantity))
        else:
            item.quantity += quantity
        db.session.commit()

    @staticmethod
    def view(user_id) -> dict:
        rows = (
            db.session.query(Cart, Product)
            .join(Product, Product.id == Cart.product_id)
            .filter(Cart.user_id == user_id)
            .order_by(Cart.created_at.asc(), Cart.product_id.asc())
            .all()
        )
        items = []
        total = Decimal("0")
        for item, product in rows:
            total += Decimal(str(product.price)) * item.quantity
            items.append({
                "product_id": product.id,
                "product_name": product.name,
                "store_id": product.store_id,
                "price": money(product.price),
                "quantity": item.quantity,
                "image": product.image,
            })
        return {"items": items, "total_price": money(total)}

    @staticmethod
    def update(user_id, product_id, quantity):
        item = db.session.get(Cart, (user_id, product_id))
        if item is None:
            raise NotFoundError(not_exist("购物车商品"))
        item.quantity = quantity
        db.session.commit()

    @staticmethod
    def delete(user_id, product_id):
        Cart.query.filter_by(user_id=user_id, product_id=product_id).delete()
        db.session.commit()

    @staticmethod
    def clear(user_id):
        Cart.query.filter_by(user_id=user_id).delete()
        db.session.commit()
