# baoleme/schemas/__init__.py
import re
from typing import Any, ClassVar, Dict, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..common.errors import not_null

PHONE_RE = re.compile(r"^1[3-9]\d{9}$")
PHONE_INVALID = "手机号格式不正确"


class RequestModel(BaseModel):
    """
    Base for JSON request bodies. Subclasses list their mandatory fields in
    `required` (field -> label) so missing or blank values produce
    "<label>不能为空" instead of the stock pydantic message.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    required: ClassVar[Dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def _check_required(cls, data: Any):
        if not isinstance(data, dict):
            return data
        for field, label in cls.required.items():
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValueError(not_null(label))
        return data


class PageRequest(RequestModel):
    page: int = 1
    page_size: int = 10

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, v):
        return max(int(v or 1), 1)

    @field_validator("page_size", mode="before")
    @classmethod
    def _page_size(cls, v):
        return max(min(int(v or 10), 100), 1)


def validate_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not PHONE_RE.match(value):
        raise ValueError(PHONE_INVALID)
    return value


def load(model):
    """Parse the JSON body into `model`; ValidationError reaches the app handler."""
    return model.model_validate(request.get_json(silent=True) or {})


def load_args(model):
    """Same as load() but for query-string parameters."""
    return model.model_validate(request.args.to_dict())
