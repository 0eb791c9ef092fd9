# baoleme/services/serializers.py
from ..models import (
    User, Merchant, Rider, Store, Product, Order, Coupon, Review, Message,
)


def money(value) -> float:
    return float(value) if value is not None else 0.0


def ts(value):
    return value.isoformat(sep=" ", timespec="seconds") if value is not None else None


def images(value):
    return [p for p in (value or "").split(",") if p]


def user_to_dict(u: User):
    return {
        "id": u.id,
        "username": u.username,
        "phone": u.phone,
        "description": u.description or "",
        "location": u.location or "",
        "gender": u.gender,
        "avatar": u.avatar,
        "created_at": ts(u.created_at),
    }


def merchant_to_dict(m: Merchant):
    return {
        "id": m.id,
        "username": m.username,
        "phone": m.phone,
        "avatar": m.avatar,
        "created_at": ts(m.created_at),
    }


def rider_to_dict(r: Rider):
    return {
        "id": r.id,
        "username": r.username,
        "phone": r.phone,
        "order_status": r.order_status,
        "dispatch_mode": r.dispatch_mode,
        "balance": money(r.balance),
        "avatar": r.avatar,
        "created_at": ts(r.created_at),
    }


def store_to_dict(s: Store):
    return {
        "id": s.id,
        "merchant_id": s.merchant_id,
        "name": s.name,
        "description": s.description or "",
        "location": s.location or "",
        "type": s.type or "",
        "rating": float(s.rating or 0),
        "status": s.status,
        "distance": float(s.distance or 0),
        "avg_price": money(s.avg_price),
        "image": s.image,
        "created_at": ts(s.created_at),
    }


def product_to_dict(p: Product):
    return {
        "id": p.id,
        "store_id": p.store_id,
        "name": p.name,
        "description": p.description or "",
        "price": money(p.price),
        "category": p.category or "",
        "stock": int(p.stock or 0),
        "rating": float(p.rating or 0),
        "status": p.status,
        "image": p.image,
        "created_at": ts(p.created_at),
    }


def order_to_dict(o: Order):
    return {
        "id": o.id,
        "user_id": o.user_id,
        "store_id": o.store_id,
        "rider_id": o.rider_id,
        "status": o.status,
        "user_location": o.user_location or "",
        "store_location": o.store_location or "",
        "total_price": money(o.total_price),
        "actual_price": money(o.actual_price),
        "delivery_price": money(o.delivery_price),
        "remark": o.remark or "",
        "cancel_reason": o.cancel_reason,
        "created_at": ts(o.created_at),
        "deadline": ts(o.deadline),
        "ended_at": ts(o.ended_at),
    }


def coupon_to_dict(c: Coupon):
    return {
        "id": c.id,
        "user_id": c.user_id,
        "store_id": c.store_id,
        "type": c.type,
        "discount": money(c.discount) if c.discount is not None else None,
        "full_amount": money(c.full_amount) if c.full_amount is not None else None,
        "reduce_amount": money(c.reduce_amount) if c.reduce_amount is not None else None,
        "expiration_date": ts(c.expiration_date),
        "is_used": bool(c.is_used),
        "created_at": ts(c.created_at),
    }


def review_to_dict(r: Review, username=None):
    return {
        "id": r.id,
        "user_id": r.user_id,
        "username": username,
        "store_id": r.store_id,
        "product_id": r.product_id,
        "rating": r.rating,
        "comment": r.comment or "",
        "images": images(r.image),
        "created_at": ts(r.created_at),
    }


def message_to_dict(m: Message):
    return {
        "id": m.id,
        "sender_id": m.sender_id,
        "sender_role": m.sender_role,
        "receiver_id": m.receiver_id,
        "receiver_role": m.receiver_role,
        "content": m.content,
        "created_at": ts(m.created_at),
    }
