# baoleme/common/errors.py
import logging

from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .response import fail

logger = logging.getLogger(__name__)

NO_PERMISSION = "您没有该操作的权限"
SERVER_ERROR = "服务异常，请稍后重试"
TOKEN_INVALID = "Token 无效或已过期"


def not_null(name: str) -> str:
    return f"{name}不能为空"


def not_repeat(name: str) -> str:
    return f"{name}不能重复"


def not_exist(name: str) -> str:
    return f"{name}不存在"


class BusinessError(Exception):
    """Rejected business operation; rendered as fail(message, code)."""

    code = 400

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(BusinessError):
    pass


class PermissionDenied(BusinessError):
    code = 403

    def __init__(self, message: str = NO_PERMISSION):
        super().__init__(message)


class Unauthorized(BusinessError):
    code = 401

    def __init__(self, message: str = TOKEN_INVALID):
        super().__init__(message)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = err.get("msg", "")
        # pydantic prefixes custom ValueError messages
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts)


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def _validation(exc):
        message = _format_validation_error(exc)
        logger.warning("request validation failed: %s", message)
        return fail(f"参数验证失败: {message}", http_status=400)

    @app.errorhandler(Unauthorized)
    def _unauthorized(exc):
        return jsonify({"code": 401, "message": exc.message}), 401

    @app.errorhandler(BusinessError)
    def _business(exc):
        logger.warning("business rule rejected: %s", exc.message)
        return fail(exc.message, exc.code)

    @app.errorhandler(ValueError)
    def _value(exc):
        logger.warning("invalid argument: %s", exc)
        return fail(f"请求参数无效: {exc}", http_status=400)

    @app.errorhandler(HTTPException)
    def _http(exc):
        code = exc.code or 500
        return fail(exc.description or exc.name, code, http_status=code)

    @app.errorhandler(Exception)
    def _unexpected(exc):
        logger.exception("unhandled error: %s", exc)
        return fail(SERVER_ERROR, 500)
