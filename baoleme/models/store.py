# baoleme/models/store.py
from . import db


class Store(db.Model):
    __tablename__ = "store"

    OPEN, CLOSED = 1, 0

    id = db.Column(db.Integer, primary_key=True)
    merchant_id = db.Column(db.Integer, db.ForeignKey("merchant.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, default="")
    location = db.Column(db.String(255), default="")
    type = db.Column(db.String(50), default="")
    rating = db.Column(db.Float, nullable=False, default=5.0)
    status = db.Column(db.Integer, nullable=False, default=1)
    distance = db.Column(db.Float, default=0)
    avg_price = db.Column(db.Numeric(10, 2), default=0)
    image = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    products = db.relationship("Product", backref="store", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Store id={self.id} name={self.name!r}>"


class Product(db.Model):
    __tablename__ = "product"

    ON_SALE, OFF_SALE = 1, 0

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("store.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, default="")
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    category = db.Column(db.String(50), default="")
    stock = db.Column(db.Integer, nullable=False, default=0)
    rating = db.Column(db.Float, nullable=False, default=5.0)
    status = db.Column(db.Integer, nullable=False, default=1)
    image = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def __repr__(self):
        return f"<Product id={self.id} name={self.name!r}>"


class Favorite(db.Model):
    __tablename__ = "favorite"

    user_id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())


class Review(db.Model):
    __tablename__ = "review"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    store_id = db.Column(db.Integer, nullable=False, index=True)
    product_id = db.Column(db.Integer)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, default="")
    image = db.Column(db.Text)  # comma separated paths
    created_at = db.Column(db.DateTime, server_default=db.func.now())


class ViewHistory(db.Model):
    __tablename__ = "view_history"

    user_id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, primary_key=True)
    view_time = db.Column(db.DateTime, nullable=False)
