# baoleme/schemas/account.py
from typing import Literal, Optional

from pydantic import Field, field_validator

from . import RequestModel, validate_phone


class _PhoneRequest(RequestModel):
    @field_validator("phone", check_fields=False)
    @classmethod
    def _phone(cls, v):
        return validate_phone(v)


# ---- user ----

class UserRegisterRequest(_PhoneRequest):
    required = {"username": "用户名", "password": "密码", "phone": "手机号"}

    username: str = Field(max_length=50)
    password: str = Field(min_length=6, max_length=64)
    phone: str
    description: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    avatar: Optional[str] = None


class UserLoginRequest(RequestModel):
    required = {"phone": "手机号", "password": "密码"}

    phone: str
    password: str


class UserUpdateRequest(_PhoneRequest):
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    password: Optional[str] = Field(default=None, min_length=6, max_length=64)
    phone: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    avatar: Optional[str] = None


# ---- merchant / rider share the same account shape ----

class AccountRegisterRequest(_PhoneRequest):
    required = {"username": "用户名", "password": "密码", "phone": "手机号"}

    username: str = Field(max_length=50)
    password: str = Field(min_length=6, max_length=64)
    phone: str


class AccountLoginRequest(RequestModel):
    required = {"username": "用户名", "password": "密码"}

    username: str
    password: str


class AccountUpdateRequest(_PhoneRequest):
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    password: Optional[str] = Field(default=None, min_length=6, max_length=64)
    phone: Optional[str] = None
    avatar: Optional[str] = None


class DispatchModeRequest(RequestModel):
    required = {"dispatch_mode": "接单模式"}

    dispatch_mode: Literal[0, 1]


# ---- admin ----

class AdminLoginRequest(RequestModel):
    required = {"admin_id": "管理员ID", "password": "密码"}

    admin_id: int
    password: str
