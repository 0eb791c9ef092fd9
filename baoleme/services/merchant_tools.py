# baoleme/services/merchant_tools.py
"""Merchant back-office: coupons, review moderation views and sales stats."""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta

from sqlalchemy import func

from ..models import db, Coupon, Review, User, Sale, Product, Order
from .serializers import coupon_to_dict, review_to_dict, money
from .store_service import StoreService

logger = logging.getLogger(__name__)

POSITIVE_RATINGS = (4, 5)
NEGATIVE_RATINGS = (1, 2)
POPULAR_WINDOW_DAYS = 30
POPULAR_LIMIT = 3


class CouponService:

    @staticmethod
    def create(merchant_id, data: dict) -> dict:
        StoreService.get_owned(data["store_id"], merchant_id)
        coupon = Coupon(
            user_id=Coupon.UNCLAIMED,
            store_id=data["store_id"],
            type=data["type"],
            discount=data.get("discount"),
            full_amount=data.get("full_amount"),
            reduce_amount=data.get("reduce_amount"),
            expiration_date=data["expiration_date"],
            is_used=False,
        )
        db.session.add(coupon)
        db.session.commit()
        logger.info("coupon %s created for store %s", coupon.id, coupon.store_id)
        return coupon_to_dict(coupon)


class ReviewService:

    @staticmethod
    def _paged(q, page, page_size) -> dict:
        total = q.count()
        total_pages = max((total + page_size - 1) // page_size, 1)
        # clamp out-of-range pages
        page = min(max(page, 1), total_pages)
        rows = q.offset((page - 1) * page_size).limit(page_size).all()
        return {
            "items": [review_to_dict(r, name) for r, name in rows],
            "total": total,
            "current_page": page,
            "total_pages": total_pages,
            "pre_page": page - 1 if page > 1 else None,
            "next_page": page + 1 if page < total_pages else None,
        }

    @staticmethod
    def _query(store_id):
        return (
            db.session.query(Review, User.username)
            .outerjoin(User, User.id == Review.user_id)
            .filter(Review.store_id == store_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )

    @staticmethod
    def list(merchant_id, store_id, page, page_size) -> dict:
        StoreService.get_owned(store_id, merchant_id)
        return ReviewService._paged(ReviewService._query(store_id), page, page_size)

    @staticmethod
    def filter(merchant_id, store_id, type_, has_image, page, page_size) -> dict:
        StoreService.get_owned(store_id, merchant_id)
        q = ReviewService._query(store_id)
        if type_ == "POSITIVE":
            q = q.filter(Review.rating.between(*POSITIVE_RATINGS))
        elif type_ == "NEGATIVE":
            q = q.filter(Review.rating.between(*NEGATIVE_RATINGS))
        if has_image is True:
            q = q.filter(Review.image.isnot(None), Review.image != "")
        elif has_image is False:
            q = q.filter((Review.image.is_(None)) | (Review.image == ""))
        return ReviewService._paged(q, page, page_size)


def _range_start(time_range: str, today: date) -> date:
    if time_range == "THIS_WEEK":
        return today - timedelta(days=today.weekday())
    if time_range == "THIS_MONTH":
        return today.replace(day=1)
    return today


def _bucket(day: date, aggregation: str) -> str:
    if aggregation == "BY_WEEK":
        monday = day - timedelta(days=day.weekday())
        return monday.isoformat()
    if aggregation == "BY_MONTH":
        return day.strftime("%Y-%m")
    return day.isoformat()


class StatsService:

    @staticmethod
    def overview(merchant_id, store_id, time_range: str, today: date | None = None) -> dict:
        StoreService.get_owned(store_id, merchant_id)
        today = today or date.today()
        start = _range_start(time_range, today)

        total_sales = (
            db.session.query(func.coalesce(func.sum(Sale.total_amount), 0))
            .filter(Sale.store_id == store_id, Sale.sale_date >= start, Sale.sale_date <= today)
            .scalar()
        )
        start_dt = datetime.combine(start, datetime.min.time())
        end_dt = datetime.combine(today + timedelta(days=1), datetime.min.time())
        order_count = Order.query.filter(
            Order.store_id == store_id,
            Order.created_at >= start_dt,
            Order.created_at < end_dt,
            Order.status != Order.CANCELLED,
        ).count()

        window_start = today - timedelta(days=POPULAR_WINDOW_DAYS)
        popular = (
            db.session.query(Product.id, Product.name, func.sum(Sale.quantity).label("qty"))
            .join(Sale, Sale.product_id == Product.id)
            .filter(Sale.store_id == store_id, Sale.sale_date >= window_start, Sale.sale_date <= today)
            .group_by(Product.id, Product.name)
            .order_by(func.sum(Sale.quantity).desc(), Product.id.asc())
            .limit(POPULAR_LIMIT)
            .all()
        )
        return {
            "total_sales": money(total_sales),
            "order_count": order_count,
            "popular_products": [{"id": pid, "name": name, "quantity": int(qty)} for pid, name, qty in popular],
        }

    @staticmethod
    def trend(merchant_id, store_id, aggregation: str, num_of_recent_days: int = 30,
              today: date | None = None) -> dict:
        StoreService.get_owned(store_id, merchant_id)
        today = today or date.today()
        start = today - timedelta(days=num_of_recent_days - 1)

        buckets = OrderedDict()
        day = start
        while day <= today:
            buckets.setdefault(_bucket(day, aggregation), 0.0)
            day += timedelta(days=1)

        rows = (
            db.session.query(Sale.sale_date, func.sum(Sale.total_amount))
            .filter(Sale.store_id == store_id, Sale.sale_date >= start, Sale.sale_date <= today)
            .group_by(Sale.sale_date)
            .all()
        )
        for sale_date, amount in rows:
            key = _bucket(sale_date, aggregation)
            if key in buckets:
                buckets[key] += money(amount)

        return {"dates": list(buckets.keys()), "values": [round(v, 2) for v in buckets.values()]}
