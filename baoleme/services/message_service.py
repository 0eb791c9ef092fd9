# baoleme/services/message_service.py
import logging

from sqlalchemy import and_, or_

from ..common.response import page_payload
from ..models import db, Message
from .serializers import message_to_dict

logger = logging.getLogger(__name__)


class MessageService:

    @staticmethod
    def save(sender_id, sender_role, receiver_id, receiver_role, content) -> dict:
        msg = Message(
            sender_id=sender_id,
            sender_role=sender_role,
            receiver_id=receiver_id,
            receiver_role=receiver_role,
            content=content,
        )
        db.session.add(msg)
        db.session.commit()
        logger.debug("message %s %s:%s -> %s:%s", msg.id, sender_role, sender_id, receiver_role, receiver_id)
        return message_to_dict(msg)

    @staticmethod
    def history(a_id, a_role, b_id, b_role, page, page_size) -> dict:
        """Conversation between two parties in both directions, oldest first."""
        q = Message.query.filter(or_(
            and_(Message.sender_id == a_id, Message.sender_role == a_role,
                 Message.receiver_id == b_id, Message.receiver_role == b_role),
            and_(Message.sender_id == b_id, Message.sender_role == b_role,
                 Message.receiver_id == a_id, Message.receiver_role == a_role),
        )).order_by(Message.created_at.asc(), Message.id.asc())
        pag = q.paginate(page=page, per_page=page_size, error_out=False)
        return page_payload(pag, [message_to_dict(m) for m in pag.items])
