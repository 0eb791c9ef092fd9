# baoleme/services/rider_service.py
import logging

from ..common import auth
from ..models import db, Rider, Order
from .account_service import AccountService
from .serializers import rider_to_dict

logger = logging.getLogger(__name__)


class RiderService(AccountService):
    model = Rider
    role = auth.ROLE_RIDER
    label = "骑手"

    @staticmethod
    def serialize(account):
        return rider_to_dict(account)

    @classmethod
    def _defaults(cls) -> dict:
        return {"order_status": Rider.OFFLINE, "dispatch_mode": Rider.AUTO, "balance": 0}

    @classmethod
    def _on_login(cls, account):
        account.order_status = Rider.IDLE

    @classmethod
    def _on_logout(cls, account):
        account.order_status = Rider.OFFLINE

    @classmethod
    def _on_delete(cls, account):
        # accepted but not yet picked up orders go back to the pool
        Order.query.filter(
            Order.rider_id == account.id, Order.status == Order.ACCEPTED
        ).update({"rider_id": None, "status": Order.WAITING, "deadline": None}, synchronize_session=False)

    @staticmethod
    def set_dispatch_mode(rider_id, mode: int) -> dict:
        rider = RiderService.get(rider_id)
        rider.dispatch_mode = mode
        db.session.commit()
        logger.info("rider %s dispatch_mode=%s", rider_id, mode)
        return {"id": rider.id, "dispatch_mode": rider.dispatch_mode}
