# baoleme/schemas/admin.py
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from . import PageRequest, RequestModel


class AdminUserListRequest(PageRequest):
    keyword: Optional[str] = None
    gender: Optional[str] = None
    start_id: Optional[int] = None
    end_id: Optional[int] = None


class AdminRiderListRequest(PageRequest):
    keyword: Optional[str] = None
    status: Optional[int] = None
    dispatch_mode: Optional[int] = None
    start_balance: Optional[Decimal] = None
    end_balance: Optional[Decimal] = None


class AdminMerchantListRequest(PageRequest):
    keyword: Optional[str] = None


class AdminStoreListRequest(PageRequest):
    keyword: Optional[str] = None
    type: Optional[str] = None
    status: Optional[int] = None
    start_rating: Optional[float] = Field(default=None, ge=0, le=5)
    end_rating: Optional[float] = Field(default=None, ge=0, le=5)


class AdminProductListRequest(PageRequest):
    store_id: Optional[int] = None
    keyword: Optional[str] = None
    category: Optional[str] = None
    status: Optional[int] = None


class AdminDeleteRequest(RequestModel):
    user_name: Optional[str] = None
    rider_name: Optional[str] = None
    merchant_name: Optional[str] = None
    store_name: Optional[str] = None
    product_name: Optional[str] = None


class AdminOrderListRequest(PageRequest):
    user_id: Optional[int] = None
    store_id: Optional[int] = None
    rider_id: Optional[int] = None
    status: Optional[int] = None
    created_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


class AdminReviewListRequest(PageRequest):
    user_id: Optional[int] = None
    store_id: Optional[int] = None
    product_id: Optional[int] = None
    start_rating: Optional[int] = Field(default=None, ge=1, le=5)
    end_rating: Optional[int] = Field(default=None, ge=1, le=5)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class AdminSearchRequest(RequestModel):
    required = {"keyword": "关键词"}

    keyword: str


class AdminReviewIdRequest(RequestModel):
    required = {"review_id": "评价ID"}

    review_id: int


# ---- messages ----

Role = Literal["user", "merchant", "rider", "admin"]


class MessageSendRequest(RequestModel):
    required = {"receiver_id": "接收者ID", "receiver_role": "接收者角色", "content": "消息内容"}

    receiver_id: int
    receiver_role: Role
    content: str = Field(max_length=2000)


class MessageHistoryRequest(PageRequest):
    required = {"receiver_id": "接收者ID", "receiver_role": "接收者角色"}

    receiver_id: int
    receiver_role: Role
