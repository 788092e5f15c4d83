from __future__ import annotations

import logging

from ..common.datetime_utils import get_zone
from ..core.constants import DEFAULT_DAILY_TARGET_SECONDS, DEFAULT_TIMEZONE
from .model import WorkPolicy
from .repository import OrganizationRepository

logger = logging.getLogger(__name__)


class WorkPolicyService:
    """Resolve an organization's timezone and daily target, falling back to configured defaults."""

    def __init__(
        self,
        organizations: OrganizationRepository,
        *,
        default_timezone: str = DEFAULT_TIMEZONE,
        default_daily_target_seconds: int = DEFAULT_DAILY_TARGET_SECONDS,
    ):
        self._organizations = organizations
        self._default_timezone = default_timezone
        self._default_target = int(default_daily_target_seconds)
        get_zone(default_timezone)

    def policy_for(self, org_id: str) -> WorkPolicy:
        org = self._organizations.get_by_id(org_id)
        if not org:
            logger.warning("Unknown organization %s, using default work policy", org_id)
            return WorkPolicy(timezone=self._default_timezone, daily_target_seconds=self._default_target)

        tz_name = org.timezone or self._default_timezone
        get_zone(tz_name)
        target = org.daily_target_seconds if org.daily_target_seconds is not None else self._default_target
        return WorkPolicy(timezone=tz_name, daily_target_seconds=int(target))
