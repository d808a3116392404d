"""JSON envelope ``{"event": ..., "data": ...}`` used on the Pub/Sub channel."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json", by_alias=True)
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def dumps(obj: Any) -> str:
    return json.dumps(obj, cls=_Encoder, separators=(",", ":"))


def serialize_event(event_type: str, payload: dict[str, Any]) -> str:
    return dumps({"event": event_type, "data": payload})


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    data = json.loads(raw)
    return data["event"], data["data"]
