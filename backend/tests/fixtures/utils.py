import uuid
from typing import Optional, Union

from _pytest.fixtures import FixtureRequest
from telegram import TelegramObject


def append_to_cls(request: FixtureRequest, func, name=None):
    """Expose class-scoped factory fixture as `self.<name>` inside test class."""
    name = name or func.__name__.strip('_')
    if request.cls:
        setattr(request.cls, name, staticmethod(func))
    return func


def get_id() -> int:
    # 48 bits, telegram ids fit into 52
    return uuid.uuid4().int >> 80


def as_dict(obj: Union[TelegramObject, dict, None], default=None) -> Optional[dict]:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()
