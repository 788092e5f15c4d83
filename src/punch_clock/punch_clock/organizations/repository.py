from __future__ import annotations

from typing import Optional, Protocol

from .model import Organization


class OrganizationRepository(Protocol):
    def get_by_id(self, org_id: str) -> Optional[Organization]:
        raise NotImplementedError
