# baoleme/schemas/store.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from . import PageRequest, RequestModel


class StoreCreateRequest(RequestModel):
    required = {"name": "店铺名"}

    name: str = Field(max_length=100)
    description: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    distance: Optional[float] = Field(default=None, ge=0)
    avg_price: Optional[Decimal] = Field(default=None, ge=0)
    image: Optional[str] = None


class StoreUpdateRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    distance: Optional[float] = Field(default=None, ge=0)
    avg_price: Optional[Decimal] = Field(default=None, ge=0)
    image: Optional[str] = None


class StoreIdRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int


class StoreStatusRequest(RequestModel):
    required = {"store_id": "店铺ID", "status": "店铺状态"}

    store_id: int
    status: Literal[0, 1]


class UserViewStoresRequest(PageRequest):
    type: Optional[str] = None


class UserViewProductsRequest(PageRequest):
    required = {"store_id": "店铺ID"}

    store_id: int
    category: Optional[str] = None


class StorePageRequest(PageRequest):
    required = {"store_id": "店铺ID"}

    store_id: int


# ---- product ----

class ProductCreateRequest(RequestModel):
    required = {"store_id": "店铺ID", "name": "商品名", "price": "商品价格"}

    store_id: int
    name: str = Field(max_length=100)
    price: Decimal = Field(ge=0)
    description: Optional[str] = None
    category: Optional[str] = None
    stock: int = Field(default=0, ge=0)
    image: Optional[str] = None


class ProductUpdateRequest(RequestModel):
    required = {"product_id": "商品ID"}

    product_id: int
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None


class ProductIdRequest(RequestModel):
    required = {"product_id": "商品ID"}

    product_id: int


class ProductStatusRequest(RequestModel):
    required = {"product_id": "商品ID", "status": "商品状态"}

    product_id: int
    status: Literal[0, 1]


# ---- coupon ----

class CouponCreateRequest(RequestModel):
    required = {"store_id": "店铺ID", "type": "优惠券类型", "expiration_date": "过期时间"}

    store_id: int
    type: Literal[1, 2]
    discount: Optional[Decimal] = Field(default=None, gt=0, le=1)
    full_amount: Optional[Decimal] = Field(default=None, gt=0)
    reduce_amount: Optional[Decimal] = Field(default=None, gt=0)
    expiration_date: datetime

    @model_validator(mode="after")
    def _check_type_fields(self):
        if self.type == 1 and self.discount is None:
            raise ValueError("折扣券必须设置折扣")
        if self.type == 2:
            if self.full_amount is None or self.reduce_amount is None:
                raise ValueError("满减券必须设置满减金额")
            if self.reduce_amount > self.full_amount:
                raise ValueError("减免金额不能大于满减门槛")
        return self


# ---- review ----

class ReviewCreateRequest(RequestModel):
    required = {"store_id": "店铺ID", "rating": "评分"}

    store_id: int
    product_id: Optional[int] = None
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=500)
    images: List[str] = []


class ReviewListRequest(PageRequest):
    required = {"store_id": "店铺ID"}

    store_id: int


class ReviewFilterRequest(ReviewListRequest):
    type: Optional[Literal["POSITIVE", "NEGATIVE"]] = None
    has_image: Optional[bool] = None


# ---- stats ----

class SaleOverviewRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int
    time_range: Literal["TODAY", "THIS_WEEK", "THIS_MONTH"] = "TODAY"


class SaleTrendRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int
    type: Literal["BY_DAY", "BY_WEEK", "BY_MONTH"] = "BY_DAY"
    num_of_recent_days: int = Field(default=30, ge=1, le=366)
