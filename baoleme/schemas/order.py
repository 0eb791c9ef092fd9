# baoleme/schemas/order.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from . import PageRequest, RequestModel


class CartItem(RequestModel):
    required = {"product_id": "商品ID", "quantity": "商品数量"}

    product_id: int
    quantity: int = Field(ge=1)


class OrderCreateRequest(RequestModel):
    required = {"store_id": "店铺ID", "items": "商品列表"}

    store_id: int
    items: List[CartItem]
    coupon_id: Optional[int] = None
    delivery_price: Decimal = Field(default=Decimal("0"), ge=0)
    remark: Optional[str] = Field(default=None, max_length=255)
    deadline: Optional[datetime] = None
    user_location: Optional[str] = None

    @field_validator("items")
    @classmethod
    def _non_empty(cls, v):
        if not v:
            raise ValueError("商品列表不能为空")
        return v


class OrderIdRequest(RequestModel):
    required = {"order_id": "订单ID"}

    order_id: int


class RiderStatusUpdateRequest(RequestModel):
    required = {"order_id": "订单ID", "target_status": "目标状态"}

    order_id: int
    target_status: Literal[2, 3]


class MerchantOrderUpdateRequest(RequestModel):
    required = {"id": "订单ID", "new_status": "新的状态"}

    id: int
    new_status: int = Field(ge=0, le=4)
    cancel_reason: Optional[str] = Field(default=None, max_length=255)


class MerchantOrderListRequest(PageRequest):
    required = {"store_id": "店铺ID"}

    store_id: int
    status: Optional[int] = None


class OrderHistoryRequest(PageRequest):
    status: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


# ---- cart ----

class CartAddRequest(RequestModel):
    required = {"product_id": "商品ID", "quantity": "商品数量"}

    product_id: int
    quantity: int

    @field_validator("quantity")
    @classmethod
    def _positive(cls, v):
        if v <= 0:
            raise ValueError("商品数量必须大于0")
        return v


class CartUpdateRequest(CartAddRequest):
    pass


class CartDeleteRequest(RequestModel):
    required = {"product_id": "商品ID"}

    product_id: int
