"""
Account lifecycle shared by users, merchants and riders: register, login,
logout, profile read/update and delete.
"""

import logging

from sqlalchemy.exc import IntegrityError

from ..common import auth
from ..common.errors import BusinessError, NotFoundError, not_exist, not_repeat
from ..models import db, Merchant
from .serializers import merchant_to_dict
from .store_service import StoreService

logger = logging.getLogger(__name__)

LOGIN_FAILED = "用户名或密码错误"


class AccountService:
    model = None
    role = None
    label = "账号"
    login_field = "username"
    profile_fields = ("username", "phone", "avatar")

    @staticmethod
    def serialize(account):
        raise NotImplementedError

    # ---- lookups ----

    @classmethod
    def get(cls, account_id):
        account = db.session.get(cls.model, account_id)
        if account is None:
            raise NotFoundError(not_exist(cls.label))
        return account

    @classmethod
    def _check_unique(cls, username=None, phone=None, exclude_id=None):
        for field, value, label in (("username", username, "用户名"), ("phone", phone, "手机号")):
            if value is None:
                continue
            q = cls.model.query.filter(getattr(cls.model, field) == value)
            if exclude_id is not None:
                q = q.filter(cls.model.id != exclude_id)
            if q.first() is not None:
                raise BusinessError(not_repeat(label))

    @classmethod
    def _commit(cls):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise BusinessError(not_repeat("用户名或手机号"), code=409)

    # ---- hooks ----

    @classmethod
    def _defaults(cls) -> dict:
        return {}

    @classmethod
    def _on_login(cls, account):
        pass

    @classmethod
    def _on_logout(cls, account):
        pass

    @classmethod
    def _on_delete(cls, account):
        pass

    # ---- operations ----

    @classmethod
    def register(cls, data: dict):
        cls._check_unique(username=data.get("username"), phone=data.get("phone"))
        fields = {k: v for k, v in data.items() if k != "password" and v is not None}
        account = cls.model(**{**cls._defaults(), **fields})
        account.set_password(data["password"])
        db.session.add(account)
        cls._commit()
        logger.info("%s registered id=%s", cls.role, account.id)
        return cls.serialize(account)

    @classmethod
    def login(cls, identifier, password) -> dict:
        account = cls.model.query.filter(getattr(cls.model, cls.login_field) == identifier).first()
        if account is None or not account.check_password(password):
            logger.warning("%s login failed for %r", cls.role, identifier)
            raise BusinessError(LOGIN_FAILED)
        token = auth.login_token(account.id, cls.role, account.username)
        cls._on_login(account)
        db.session.commit()
        logger.info("%s login id=%s", cls.role, account.id)
        return {"token": token, **cls.serialize(account)}

    @classmethod
    def logout(cls, account_id):
        account = db.session.get(cls.model, account_id)
        auth.revoke_token(account_id, cls.role)
        if account is not None:
            cls._on_logout(account)
        db.session.commit()
        logger.info("%s logout id=%s", cls.role, account_id)

    @classmethod
    def info(cls, account_id) -> dict:
        return cls.serialize(cls.get(account_id))

    @classmethod
    def update(cls, account_id, changes: dict) -> dict:
        account = cls.get(account_id)
        cls._check_unique(
            username=changes.get("username"), phone=changes.get("phone"), exclude_id=account.id
        )
        renamed = changes.get("username") is not None and changes["username"] != account.username
        for field in cls.profile_fields:
            if changes.get(field) is not None:
                setattr(account, field, changes[field])
        if changes.get("password"):
            account.set_password(changes["password"])
        result = {}
        if renamed:
            result["token"] = auth.refresh_token(account.id, cls.role, account.username)
        cls._commit()
        logger.info("%s updated id=%s", cls.role, account.id)
        return {**cls.serialize(account), **result}

    @classmethod
    def delete(cls, account_id):
        account = cls.get(account_id)
        cls._on_delete(account)
        auth.revoke_token(account.id, cls.role)
        db.session.delete(account)
        db.session.commit()
        logger.info("%s deleted id=%s", cls.role, account_id)


class MerchantService(AccountService):
    model = Merchant
    role = auth.ROLE_MERCHANT
    label = "商家"

    @staticmethod
    def serialize(account):
        return merchant_to_dict(account)

    @classmethod
    def _on_delete(cls, account):
        for store in list(account.stores):
            StoreService.remove(store)
