"""Renumber punch ordinals per (organization, worker, local day) from their timestamps."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.punch_clock.punch_clock.container import build_container
from src.punch_clock.punch_clock.core.constants import DEFAULT_DAILY_TARGET_SECONDS, DEFAULT_TIMEZONE
from src.punch_clock.punch_clock.logging_config import configure_logging
from src.punch_clock.punch_clock.punches.backfill import backfill_ordinals


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        default_timezone=getattr(settings, "DEFAULT_TIMEZONE", DEFAULT_TIMEZONE),
        daily_target_seconds=int(getattr(settings, "DAILY_TARGET_SECONDS", DEFAULT_DAILY_TARGET_SECONDS)),
    )
    backfill_ordinals(container.punches_repo, container.work_policy_service)


if __name__ == "__main__":
    main()
