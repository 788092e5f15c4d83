"""Example: use the service layer directly (no Flask).

Controllers are a thin layer; the punch rules live in the services.
"""

import importlib

from config import get_settings_module

from src.punch_clock.punch_clock.container import build_container
from src.punch_clock.punch_clock.punches.model import ScopeKey


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    today = container.punch_service.get_today(ScopeKey(org_id="demo-org", worker_id="worker-1"))
    print(today.summary, today.next_expected)


if __name__ == "__main__":
    main()
