from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class DataTableResponse:
    """Payload returned to the DataTables widget."""

    draw: int
    records_total: int
    records_filtered: int
    data: list[Any] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failure(cls, draw: int, error: str) -> "DataTableResponse":
        return cls(draw=draw, records_total=0, records_filtered=0, data=[], error=error)

    def to_dict(self) -> dict:
        payload = {
            "draw": self.draw,
            "recordsTotal": self.records_total,
            "recordsFiltered": self.records_filtered,
            "data": self.data,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload
