"""Client-side call quota governor.

``GovernorState`` is the single shared log; ``CallGovernor`` handles
apply per-resource ceilings to it.
"""

from geoguard.governor.cooldown import CooldownLimiter, CooldownStatus
from geoguard.governor.governor import CallGovernor
from geoguard.governor.state import GovernorState
from geoguard.governor.sweep import CallLogSweeper

__all__ = [
    "CallGovernor",
    "CallLogSweeper",
    "CooldownLimiter",
    "CooldownStatus",
    "GovernorState",
]
