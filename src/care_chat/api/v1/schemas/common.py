from __future__ import annotations

from pydantic import BaseModel


class UnreadCountResponse(BaseModel):
    total: int
