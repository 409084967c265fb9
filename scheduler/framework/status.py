"""
scheduler/framework/status.py
──────────────────────────────
Status: the typed result every extension point hands back to the host.

Three outcomes, kept distinct so the host can tell them apart:

  SUCCESS       → carry on.
  UNSCHEDULABLE → "cannot place here". A normal outcome, not a bug. Carries
                  every reason collected by the feasibility check.
  ERROR         → "something is wrong": missing pre-filter state, a machine
                  the snapshot cannot resolve. Not retryable in this cycle.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Code(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    UNSCHEDULABLE = "unschedulable"


class Status(BaseModel):
    """Result of one extension point call."""
    model_config = ConfigDict(frozen=True)

    code: Code = Code.SUCCESS
    reasons: List[str] = Field(default_factory=list)

    @classmethod
    def success(cls) -> "Status":
        return cls()

    @classmethod
    def error(cls, message: str) -> "Status":
        return cls(code=Code.ERROR, reasons=[message])

    @classmethod
    def unschedulable(cls, *reasons: str) -> "Status":
        return cls(code=Code.UNSCHEDULABLE, reasons=list(reasons))

    def is_success(self) -> bool:
        return self.code == Code.SUCCESS

    @property
    def message(self) -> str:
        """All reasons joined, for log lines and exception messages."""
        return ", ".join(self.reasons)
