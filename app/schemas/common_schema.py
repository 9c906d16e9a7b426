import math
from typing import Optional

from pydantic import BaseModel


class Pagination(BaseModel):
    """Offset pagination metadata returned next to every list payload."""

    total: int
    per_page: int
    current_page: int
    last_page: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(
            total=total,
            per_page=limit,
            current_page=page,
            last_page=max(1, math.ceil(total / limit)),
        )


class Envelope(BaseModel):
    """Fields shared by every JSON response."""

    success: bool = True
    message: Optional[str] = None


class ErrorEnvelope(Envelope):
    success: bool = False
    error_code: str
    errors: Optional[dict[str, list[str]]] = None
