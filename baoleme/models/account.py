# baoleme/models/account.py
from werkzeug.security import generate_password_hash, check_password_hash

from . import db


class PasswordMixin:
    password = db.Column(db.String(255), nullable=False)

    def set_password(self, raw: str):
        self.password = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        if not self.password or raw is None:
            return False
        return check_password_hash(self.password, raw)


class User(PasswordMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False, unique=True)
    phone = db.Column(db.String(20), nullable=False, unique=True)
    description = db.Column(db.String(255), default="")
    location = db.Column(db.String(255), default="")
    gender = db.Column(db.String(10))
    avatar = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r}>"


class Merchant(PasswordMixin, db.Model):
    __tablename__ = "merchant"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False, unique=True)
    phone = db.Column(db.String(20), nullable=False, unique=True)
    avatar = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    stores = db.relationship("Store", backref="merchant", lazy=True, cascade="all, delete-orphan")


class Rider(PasswordMixin, db.Model):
    __tablename__ = "rider"

    # order_status: -1 offline, 0 busy, 1 idle
    OFFLINE, BUSY, IDLE = -1, 0, 1
    # dispatch_mode: 0 manual, 1 auto
    MANUAL, AUTO = 0, 1

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False, unique=True)
    phone = db.Column(db.String(20), nullable=False, unique=True)
    order_status = db.Column(db.Integer, nullable=False, default=-1)
    dispatch_mode = db.Column(db.Integer, nullable=False, default=1)
    balance = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    avatar = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())


class Admin(PasswordMixin, db.Model):
    __tablename__ = "admin"

    id = db.Column(db.Integer, primary_key=True)


class AuthToken(db.Model):
    """Server-side registry of live tokens, one per role:id subject."""

    __tablename__ = "auth_token"

    subject = db.Column(db.String(64), primary_key=True)
    token = db.Column(db.Text, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
