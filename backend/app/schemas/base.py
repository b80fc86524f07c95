from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def envelope(message: str, data: Any = None, *, success: bool = True) -> dict[str, Any]:
    """Wrap a payload in the ``{success, message, data}`` response shape with camelCase keys."""
    body: dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data, by_alias=True)
    return body
