# baoleme/common/response.py
from flask import jsonify


def _envelope(success: bool, code: int, message: str, data=None):
    return {"success": success, "code": code, "message": message, "data": data}


def ok(data=None):
    return jsonify(_envelope(True, 200, "success", data)), 200


def fail(message: str, code: int = 400, data=None, http_status: int | None = None):
    """
    Business failures (code 400) travel with HTTP 200 so the client reads
    `success`; everything else uses its code as the HTTP status.
    """
    if http_status is None:
        http_status = 200 if code == 400 else code
    return jsonify(_envelope(False, code, message, data)), http_status


def page_payload(pag, items):
    """Flask-SQLAlchemy Pagination -> the shape every list endpoint returns."""
    return {
        "items": items,
        "total": pag.total,
        "current_page": pag.page,
        "page_size": pag.per_page,
        "total_pages": pag.pages,
    }
