# baoleme/blueprints/merchant_tools.py
"""Coupon issuing, review views and sales stats for merchants."""
from flask import Blueprint

from ..common.auth import ROLE_MERCHANT, current_id, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.store import (
    CouponCreateRequest, ReviewFilterRequest, ReviewListRequest, SaleOverviewRequest,
    SaleTrendRequest,
)
from ..services.merchant_tools import CouponService, ReviewService, StatsService

coupon_bp = Blueprint("coupon", __name__)
reviews_bp = Blueprint("reviews", __name__)
stats_bp = Blueprint("stats", __name__)


@coupon_bp.post("/create")
@login_required(ROLE_MERCHANT)
def create_coupon():
    req = load(CouponCreateRequest)
    return ok(CouponService.create(current_id(), req.model_dump()))


@reviews_bp.post("/list")
@login_required(ROLE_MERCHANT)
def list_reviews():
    req = load(ReviewListRequest)
    return ok(ReviewService.list(current_id(), req.store_id, req.page, req.page_size))


@reviews_bp.post("/filter")
@login_required(ROLE_MERCHANT)
def filter_reviews():
    req = load(ReviewFilterRequest)
    return ok(ReviewService.filter(
        current_id(), req.store_id, req.type, req.has_image, req.page, req.page_size
    ))


@stats_bp.post("/overview")
@login_required(ROLE_MERCHANT)
def overview():
    req = load(SaleOverviewRequest)
    return ok(StatsService.overview(current_id(), req.store_id, req.time_range))


@stats_bp.post("/trend")
@login_required(ROLE_MERCHANT)
def trend():
    req = load(SaleTrendRequest)
    return ok(StatsService.trend(current_id(), req.store_id, req.type, req.num_of_recent_days))
