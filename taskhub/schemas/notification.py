from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class DeliveryReport(BaseModel):
    delivered: int
    failed: int
    details: list[dict[str, Any]]


class ReminderSweepReport(BaseModel):
    sent: int
    suppressed: int
    failed: int
    details: list[dict[str, Any]]
