"""
Order lifecycle: checkout, rider grabbing/dispatch, delivery status and the
merchant side of order handling.
"""

import logging
import random
from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, update

from ..common.errors import BusinessError, NotFoundError, PermissionDenied, not_exist
from ..common.response import page_payload
from ..models import db, Order, OrderItem, Product, Store, User, Rider, Coupon, Cart, Sale
from .serializers import order_to_dict, money, ts
from .store_service import StoreService

logger = logging.getLogger(__name__)

PICKUP_MINUTES = 30
ESTIMATED_DELIVERY_MINUTES = 30

ORDER_TAKEN = "订单已被抢或不存在"
NO_IDLE_ORDER = "目前无空闲订单"
MANUAL_DISPATCH = "当前骑手不自动接单"

# rider-driven transitions
RIDER_TRANSITIONS = {Order.ACCEPTED: Order.DELIVERING, Order.DELIVERING: Order.COMPLETED}


def _order_items(order_id):
    rows = (
        db.session.query(OrderItem, Product)
        .outerjoin(Product, Product.id == OrderItem.product_id)
        .filter(OrderItem.order_id == order_id)
        .all()
    )
    return [
        {
            "product_id": item.product_id,
            "product_name": product.name if product else None,
            "price": money(product.price) if product else 0.0,
            "quantity": item.quantity,
            "image": product.image if product else None,
        }
        for item, product in rows
    ]


def _time_window(q, column, start=None, end=None):
    if start is not None:
        q = q.filter(column >= start)
    if end is not None:
        q = q.filter(column <= end)
    return q


def _release_rider(rider_id, order_id):
    """Put a busy rider back to idle unless another open order is still theirs."""
    if rider_id is None:
        return
    rider = db.session.get(Rider, rider_id)
    if rider is None or rider.order_status != Rider.BUSY:
        return
    still_busy = Order.query.filter(
        Order.rider_id == rider_id,
        Order.id != order_id,
        Order.status.in_((Order.ACCEPTED, Order.DELIVERING)),
    ).count()
    if not still_busy:
        rider.order_status = Rider.IDLE


def _settle_rider(rider_id, order):
    rider = db.session.get(Rider, rider_id)
    if rider is not None:
        rider.balance = Decimal(str(rider.balance or 0)) + Decimal(str(order.delivery_price or 0))
    _release_rider(rider_id, order.id)


def _restock(order_id):
    for item in OrderItem.query.filter_by(order_id=order_id).all():
        db.session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .values(stock=Product.stock + item.quantity)
            .execution_options(synchronize_session=False)
        )
    Sale.query.filter_by(order_id=order_id).delete()


class OrderService:

    @staticmethod
    def get(order_id) -> Order:
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFoundError(not_exist("订单"))
        return order

    # ---- checkout ----

    @staticmethod
    def create(user_id, data: dict) -> dict:
        """
        Place an order for the user.

        Stock, coupon and cart are all changed in a single transaction; any
        failure rolls the whole checkout back.
        """
        try:
            user = db.session.get(User, user_id)
            if user is None:
                raise NotFoundError(not_exist("用户"))
            store = db.session.get(Store, data["store_id"])
            if store is None:
                raise NotFoundError(not_exist("店铺"))

            # merge duplicate lines
            quantities = OrderedDict()
            for line in data["items"]:
                quantities[line["product_id"]] = quantities.get(line["product_id"], 0) + line["quantity"]

            total = Decimal("0")
            products = {}
            for product_id, quantity in quantities.items():
                product = db.session.get(Product, product_id)
                if product is None or product.store_id != store.id:
                    raise NotFoundError(f"商品不存在，ID: {product_id}")
                if product.status != Product.ON_SALE:
                    raise BusinessError(f"商品已下架：{product.name}")
                products[product_id] = product
                total += Decimal(str(product.price)) * quantity

            discounted = total
            coupon = None
            if data.get("coupon_id") is not None:
                coupon = db.session.get(Coupon, data["coupon_id"])
                if coupon is None:
                    raise NotFoundError(not_exist("优惠券"))
                if coupon.user_id != user_id or coupon.store_id != store.id:
                    raise BusinessError("优惠券不可用于该订单")
                if not coupon.is_valid():
                    raise BusinessError("优惠券已使用或已过期")
                discounted = coupon.apply_discount(total)

            delivery_price = Decimal(str(data.get("delivery_price") or 0))
            actual = discounted + delivery_price
            now = datetime.now()

            order = Order(
                user_id=user_id,
                store_id=store.id,
                status=Order.WAITING,
                user_location=data.get("user_location") or user.location or "",
                store_location=store.location or "",
                total_price=total,
                actual_price=actual,
                delivery_price=delivery_price,
                remark=data.get("remark") or "",
                created_at=now,
                deadline=data.get("deadline"),
            )
            db.session.add(order)
            db.session.flush()

            for product_id, quantity in quantities.items():
                product = products[product_id]
                # the stock guard in the WHERE clause is what stops overselling
                taken = db.session.execute(
                    update(Product)
                    .where(Product.id == product_id, Product.stock >= quantity)
                    .values(stock=Product.stock - quantity)
                    .execution_options(synchronize_session=False)
                )
                if taken.rowcount != 1:
                    raise BusinessError(f"商品库存不足：{product.name}")
                db.session.add(OrderItem(order_id=order.id, product_id=product_id, quantity=quantity))
                db.session.add(Sale(
                    order_id=order.id,
                    product_id=product_id,
                    store_id=store.id,
                    sale_date=now.date(),
                    quantity=quantity,
                    unit_price=product.price,
                    total_amount=Decimal(str(product.price)) * quantity,
                    payment_method="ONLINE",
                    customer_id=user_id,
                    created_at=now,
                ))

            if coupon is not None:
                redeemed = db.session.execute(
                    update(Coupon)
                    .where(Coupon.id == coupon.id, Coupon.is_used.is_(False))
                    .values(is_used=True)
                    .execution_options(synchronize_session=False)
                )
                if redeemed.rowcount != 1:
                    raise BusinessError("优惠券已使用或已过期")
            Cart.query.filter_by(user_id=user_id).delete()

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("order %s created by user %s actual=%s", order.id, user_id, actual)
        return {
            "order_id": order.id,
            "total_price": money(total),
            "actual_price": money(actual),
            "delivery_price": money(delivery_price),
            "status": order.status,
            "store_id": store.id,
            "store_name": store.name,
            "remark": order.remark,
            "created_at": ts(order.created_at),
            "items": _order_items(order.id),
        }

    # ---- rider side ----

    @staticmethod
    def available(page, page_size) -> dict:
        q = (
            db.session.query(Order, Store.name)
            .outerjoin(Store, Store.id == Order.store_id)
            .filter(Order.status == Order.WAITING, Order.rider_id.is_(None))
            .order_by(Order.created_at.asc(), Order.id.asc())
        )
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        items = [
            {
                "order_id": o.id,
                "store_id": o.store_id,
                "store_name": store_name,
                "store_location": o.store_location,
                "delivery_address": o.user_location,
                "delivery_price": money(o.delivery_price),
                "actual_price": money(o.actual_price),
                "created_at": ts(o.created_at),
                "estimated_time": ESTIMATED_DELIVERY_MINUTES,
            }
            for o, store_name in pag.items
        ]
        return page_payload(pag, items)

    @staticmethod
    def grab(rider_id, order_id) -> dict:
        """
        Claim a waiting order. The conditional UPDATE is the lock: of two
        riders racing for the same order exactly one sees rowcount == 1.
        """
        deadline = datetime.now() + timedelta(minutes=PICKUP_MINUTES)
        result = db.session.execute(
            update(Order)
            .where(Order.id == order_id, Order.rider_id.is_(None), Order.status == Order.WAITING)
            .values(rider_id=rider_id, status=Order.ACCEPTED, deadline=deadline)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            logger.warning("rider %s failed to grab order %s", rider_id, order_id)
            raise BusinessError(ORDER_TAKEN)
        rider = db.session.get(Rider, rider_id)
        if rider is not None:
            rider.order_status = Rider.BUSY
        db.session.commit()
        logger.info("rider %s grabbed order %s", rider_id, order_id)
        return {"order_id": order_id, "rider_id": rider_id, "status": Order.ACCEPTED, "deadline": ts(deadline)}

    @staticmethod
    def rider_cancel(rider_id, order_id) -> dict:
        result = db.session.execute(
            update(Order)
            .where(Order.id == order_id, Order.rider_id == rider_id, Order.status == Order.ACCEPTED)
            .values(rider_id=None, status=Order.WAITING, deadline=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise BusinessError("订单无法取消")
        _release_rider(rider_id, order_id)
        db.session.commit()
        logger.info("rider %s released order %s", rider_id, order_id)
        return {"order_id": order_id, "status": Order.WAITING}

    @staticmethod
    def rider_update_status(rider_id, order_id, target: int) -> dict:
        order = OrderService.get(order_id)
        if order.rider_id != rider_id:
            raise PermissionDenied()
        if RIDER_TRANSITIONS.get(order.status) != target:
            raise BusinessError(f"订单状态无法从{order.status}变更为{target}")
        order.status = target
        if target == Order.COMPLETED:
            order.ended_at = datetime.now()
            _settle_rider(rider_id, order)
        db.session.commit()
        logger.info("rider %s moved order %s to status %s", rider_id, order_id, target)
        return {
            "order_id": order.id,
            "status": order.status,
            "updated_at": ts(datetime.now()),
            "ended_at": ts(order.ended_at),
        }

    @staticmethod
    def rider_history(rider_id, status, start, end, page, page_size) -> dict:
        q = Order.query.filter(Order.rider_id == rider_id)
        if status is not None:
            q = q.filter(Order.status == status)
        q = _time_window(q, Order.created_at, start, end)
        pag = q.order_by(Order.created_at.desc(), Order.id.desc()).paginate(
            page=page, per_page=page_size, error_out=False
        )
        return page_payload(pag, [order_to_dict(o) for o in pag.items])

    @staticmethod
    def rider_earnings(rider_id) -> dict:
        completed = Order.query.filter(Order.rider_id == rider_id, Order.status == Order.COMPLETED)
        count = completed.count()
        total = (
            db.session.query(func.coalesce(func.sum(Order.delivery_price), 0))
            .filter(Order.rider_id == rider_id, Order.status == Order.COMPLETED)
            .scalar()
        )
        month_start = datetime.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        month = (
            db.session.query(func.coalesce(func.sum(Order.delivery_price), 0))
            .filter(
                Order.rider_id == rider_id,
                Order.status == Order.COMPLETED,
                Order.created_at >= month_start,
            )
            .scalar()
        )
        return {"completed_orders": count, "total_earnings": money(total), "current_month": money(month)}

    @staticmethod
    def random_dispatch(rider_id) -> dict:
        rider = db.session.get(Rider, rider_id)
        if rider is None:
            raise NotFoundError(not_exist("骑手"))
        if rider.dispatch_mode == Rider.MANUAL:
            raise BusinessError(MANUAL_DISPATCH)
        candidates = [
            oid for (oid,) in db.session.query(Order.id)
            .filter(Order.status == Order.WAITING, Order.rider_id.is_(None))
            .all()
        ]
        random.shuffle(candidates)
        # another rider may win a candidate between the read and the update
        for order_id in candidates:
            try:
                return OrderService.grab(rider_id, order_id)
            except BusinessError:
                continue
        raise BusinessError(NO_IDLE_ORDER)

    # ---- merchant side ----

    @staticmethod
    def merchant_list(merchant_id, store_id, status, page, page_size) -> dict:
        StoreService.get_owned(store_id, merchant_id)
        q = Order.query.filter(Order.store_id == store_id)
        if status is not None:
            q = q.filter(Order.status == status)
        pag = q.order_by(Order.created_at.desc(), Order.id.desc()).paginate(
            page=page, per_page=page_size, error_out=False
        )
        return page_payload(pag, [{**order_to_dict(o), "items": _order_items(o.id)} for o in pag.items])

    @staticmethod
    def merchant_update(merchant_id, order_id, new_status, cancel_reason=None) -> dict:
        """
        Merchant-side status change. Allowed moves:

        - any open order -> CANCELLED (reason required; stock and sales are
          rolled back, the rider is freed)
        - ACCEPTED -> WAITING (the rider is unassigned)
        - DELIVERING -> COMPLETED (same settlement as a rider completing)
        """
        order = OrderService.get(order_id)
        if not StoreService.validate_ownership(order.store_id, merchant_id):
            raise PermissionDenied()
        if order.status in (Order.COMPLETED, Order.CANCELLED):
            raise BusinessError("订单已结束，无法修改")

        rider_id = order.rider_id
        if new_status == Order.CANCELLED:
            if not cancel_reason:
                raise BusinessError("取消订单必须填写原因")
            order.cancel_reason = cancel_reason
            order.ended_at = datetime.now()
            _restock(order.id)
            _release_rider(rider_id, order.id)
        elif order.status == Order.ACCEPTED and new_status == Order.WAITING:
            order.rider_id = None
            order.deadline = None
            _release_rider(rider_id, order.id)
        elif order.status == Order.DELIVERING and new_status == Order.COMPLETED:
            order.ended_at = datetime.now()
            if rider_id is not None:
                _settle_rider(rider_id, order)
        else:
            raise BusinessError(f"订单状态无法从{order.status}变更为{new_status}")
        order.status = new_status
        db.session.commit()
        logger.info("merchant %s set order %s status=%s", merchant_id, order_id, new_status)
        return {
            "id": order.id,
            "status": order.status,
            "cancel_reason": order.cancel_reason,
            "updated_at": ts(datetime.now()),
        }

    # ---- customer side ----

    @staticmethod
    def user_history(user_id, status, start, end, page, page_size) -> dict:
        q = (
            db.session.query(Order, Store.name, Rider.username, Rider.phone)
            .outerjoin(Store, Store.id == Order.store_id)
            .outerjoin(Rider, Rider.id == Order.rider_id)
            .filter(Order.user_id == user_id)
        )
        if status is not None:
            q = q.filter(Order.status == status)
        q = _time_window(q, Order.created_at, start, end)
        pag = q.order_by(Order.created_at.desc(), Order.id.desc()).paginate(
            page=page, per_page=page_size, error_out=False
        )
        items = [
            {**order_to_dict(o), "store_name": store_name, "rider_name": rider_name, "rider_phone": rider_phone}
            for o, store_name, rider_name, rider_phone in pag.items
        ]
        return page_payload(pag, items)

    @staticmethod
    def user_order(user_id, order_id) -> Order:
        order = OrderService.get(order_id)
        if order.user_id != user_id:
            raise PermissionDenied()
        return order

    @staticmethod
    def user_order_items(user_id, order_id) -> dict:
        order = OrderService.user_order(user_id, order_id)
        return {
            "items": _order_items(order.id),
            "total_price": money(order.total_price),
            "actual_price": money(order.actual_price),
            "delivery_price": money(order.delivery_price),
        }

    @staticmethod
    def user_order_detail(user_id, order_id) -> dict:
        order = OrderService.user_order(user_id, order_id)
        store = db.session.get(Store, order.store_id)
        phone = None
        if store is not None and store.merchant is not None:
            phone = store.merchant.phone
        return {**order_to_dict(order), "store_name": store.name if store else None, "phone": phone}

    @staticmethod
    def current_orders(user_id):
        orders = (
            Order.query.filter(Order.user_id == user_id, Order.status.in_((Order.WAITING, Order.ACCEPTED)))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )
        return [order_to_dict(o) for o in orders]
