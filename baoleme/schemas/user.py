# baoleme/schemas/user.py
from decimal import Decimal
from typing import Optional

from pydantic import Field

from . import PageRequest, RequestModel


class StoreFilterRequest(PageRequest):
    """Shared filters for the favorites list and store search."""

    type: Optional[str] = None
    distance: Optional[float] = Field(default=None, ge=0)
    wish_price: Optional[Decimal] = Field(default=None, ge=0)
    start_rating: Optional[float] = Field(default=None, ge=0, le=5)
    end_rating: Optional[float] = Field(default=None, ge=0, le=5)


class SearchRequest(StoreFilterRequest):
    keyword: Optional[str] = None


class FavoriteRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int


class CouponQueryRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int


class CouponClaimRequest(RequestModel):
    required = {"coupon_id": "优惠券ID"}

    coupon_id: int


class ViewHistoryRecordRequest(RequestModel):
    required = {"store_id": "店铺ID"}

    store_id: int
