# baoleme/blueprints/message.py
from flask import Blueprint

from ..common.auth import current_id, current_role, current_username, login_required
from ..common.response import ok
from ..schemas import load
from ..schemas.admin import MessageHistoryRequest, MessageSendRequest
from ..services.message_service import MessageService

bp = Blueprint("message", __name__)


@bp.post("/send")
@login_required()
def send():
    req = load(MessageSendRequest)
    msg = MessageService.save(current_id(), current_role(), req.receiver_id, req.receiver_role, req.content)
    return ok({**msg, "sender_name": current_username()})


@bp.post("/history")
@login_required()
def history():
    req = load(MessageHistoryRequest)
    page = MessageService.history(
        current_id(), current_role(), req.receiver_id, req.receiver_role, req.page, req.page_size
    )
    page["messages"] = page.pop("items")
    return ok(page)
