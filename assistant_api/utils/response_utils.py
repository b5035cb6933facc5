from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema whose JSON form uses camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def build_error_response(error: str, message: str, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": error, "message": message}
    payload.update({key: value for key, value in extra.items() if value is not None})
    return payload

