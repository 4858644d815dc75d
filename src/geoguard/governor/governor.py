"""Call governor handle."""

from __future__ import annotations

from geoguard._constants import DEFAULT_TAG
from geoguard.config import DEFAULT_PROFILE, GovernorConfig
from geoguard.governor.state import GovernorState
from geoguard.models.governor import GovernorStatus


class CallGovernor:
    """Advisory client-side guard in front of a rate-limited API.

    Each handle carries its own ceilings but shares ``state`` with every
    other handle built on it.  Record eagerly, before issuing the metered
    request::

        maps = CallGovernor(state, MAPS_PROFILE)
        if maps.record_call("maps"):
            await load_tiles()

    The governor never raises for an exhausted quota.
    """

    def __init__(self, state: GovernorState, config: GovernorConfig = DEFAULT_PROFILE) -> None:
        self._state = state
        self._config = config

    @property
    def config(self) -> GovernorConfig:
        return self._config

    @property
    def state(self) -> GovernorState:
        return self._state

    def configure(self, max_per_minute: int, max_per_hour: int, max_per_day: int) -> None:
        """Replace this handle's ceilings.  Call history is untouched.

        Raises :class:`~geoguard.exceptions.GeoGuardConfigError` for
        non-positive ceilings.
        """
        self._config = GovernorConfig(
            max_per_minute=max_per_minute,
            max_per_hour=max_per_hour,
            max_per_day=max_per_day,
        )

    def may_call(self, tag: str = DEFAULT_TAG) -> bool:
        """Whether a call is permitted now.  Never records a call.

        *tag* is accepted for symmetry with :meth:`record_call`; all tags
        share one quota.
        """
        return self._state.check(self._config)

    def record_call(self, tag: str = DEFAULT_TAG) -> bool:
        """Check permission and, when granted, record the call atomically."""
        return self._state.check_and_record(self._config, tag)

    def status(self) -> GovernorStatus:
        return self._state.snapshot(self._config)

    def reset(self) -> None:
        """Clear call history and block state for every handle (debug hook)."""
        self._state.reset()
