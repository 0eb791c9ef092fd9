# baoleme/models/order.py
from datetime import datetime
from decimal import Decimal

from . import db


class Order(db.Model):
    __tablename__ = "order"

    # status: 0 waiting for rider, 1 accepted, 2 delivering, 3 completed, 4 cancelled
    WAITING, ACCEPTED, DELIVERING, COMPLETED, CANCELLED = 0, 1, 2, 3, 4

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    store_id = db.Column(db.Integer, nullable=False, index=True)
    rider_id = db.Column(db.Integer, nullable=True, index=True)
    status = db.Column(db.Integer, nullable=False, default=0)
    user_location = db.Column(db.String(255), default="")
    store_location = db.Column(db.String(255), default="")
    total_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    actual_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    delivery_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    remark = db.Column(db.String(255), default="")
    cancel_reason = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    deadline = db.Column(db.DateTime)
    ended_at = db.Column(db.DateTime)

    items = db.relationship("OrderItem", backref="order", lazy=True, cascade="all, delete-orphan")


class OrderItem(db.Model):
    __tablename__ = "order_item"

    order_id = db.Column(db.Integer, db.ForeignKey("order.id"), primary_key=True)
    product_id = db.Column(db.Integer, primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)


class Cart(db.Model):
    __tablename__ = "cart"

    user_id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, server_default=db.func.now())


class Coupon(db.Model):
    __tablename__ = "coupon"

    DISCOUNT, FULL_REDUCTION = 1, 2
    UNCLAIMED = 0

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, default=0, index=True)
    store_id = db.Column(db.Integer, nullable=False, index=True)
    type = db.Column(db.Integer, nullable=False)
    discount = db.Column(db.Numeric(4, 2))
    full_amount = db.Column(db.Numeric(10, 2))
    reduce_amount = db.Column(db.Numeric(10, 2))
    expiration_date = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def is_expired(self, now=None) -> bool:
        now = now or datetime.now()
        return self.expiration_date is not None and self.expiration_date < now

    def is_valid(self, now=None) -> bool:
        return not self.is_used and not self.is_expired(now)

    def apply_discount(self, amount) -> Decimal:
        amount = Decimal(str(amount))
        if self.type == self.DISCOUNT and self.discount is not None:
            result = amount * Decimal(str(self.discount))
        elif (self.type == self.FULL_REDUCTION and self.full_amount is not None
              and amount >= Decimal(str(self.full_amount))):
            result = amount - Decimal(str(self.reduce_amount or 0))
        else:
            result = amount
        return max(result, Decimal("0")).quantize(Decimal("0.01"))


class Sale(db.Model):
    __tablename__ = "sales"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, index=True)
    product_id = db.Column(db.Integer, nullable=False, index=True)
    store_id = db.Column(db.Integer, nullable=False, index=True)
    sale_date = db.Column(db.Date, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(32), default="ONLINE")
    customer_id = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
