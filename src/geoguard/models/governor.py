"""Call governor models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geoguard.models._base import UtcTimestamp


class BlockReason(StrEnum):
    """Which rolling window put the governor into the blocked state."""

    NONE = "none"
    MINUTE_LIMIT = "minute_limit"
    HOUR_LIMIT = "hour_limit"
    DAY_LIMIT = "day_limit"

    @property
    def label(self) -> str:
        """Human-readable description for status displays."""
        return _LABELS[self]


_LABELS: dict[BlockReason, str] = {
    BlockReason.NONE: "",
    BlockReason.MINUTE_LIMIT: "Minute limit exceeded",
    BlockReason.HOUR_LIMIT: "Hour limit exceeded",
    BlockReason.DAY_LIMIT: "Daily limit exceeded",
}


class CallRecord(BaseModel):
    """One permitted call against a metered endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: UtcTimestamp
    tag: str = Field(..., description="Metered endpoint the call was made against, e.g. 'maps'")

    @field_validator("tag")
    @classmethod
    def _normalize_tag(cls, value: str) -> str:
        tag = value.strip()
        if not tag:
            raise ValueError("tag must be non-empty")
        return tag


class GovernorStatus(BaseModel):
    """Read-only snapshot of the governor, cheap enough to poll every second.

    Parameters
    ----------
    can_call : bool
        ``True`` when not blocked and every window is below its ceiling.
    remaining_calls_this_minute : int
        Calls left in the rolling minute; ``0`` while blocked.
    blocked : bool
        Whether a block window is active.
    block_reason : BlockReason
        Window that caused the active block, ``NONE`` otherwise.
    seconds_until_unblock : int
        Whole seconds (rounded up) until the block lifts; ``0`` when not blocked.
    calls_per_minute, calls_per_hour, calls_per_day : int
        Calls recorded in each rolling window.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    can_call: bool
    remaining_calls_this_minute: int
    blocked: bool
    block_reason: BlockReason = BlockReason.NONE
    seconds_until_unblock: int = 0
    calls_per_minute: int = 0
    calls_per_hour: int = 0
    calls_per_day: int = 0
