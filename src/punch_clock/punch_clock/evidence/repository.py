from __future__ import annotations

from typing import Optional, Protocol

from ..punches.model import ScopeKey
from .model import EvidencePhoto


class EvidenceStore(Protocol):
    def save(self, scope: ScopeKey, *, mime_type: str, payload: bytes) -> str:
        """Store a photo and return its opaque reference."""
        raise NotImplementedError

    def load(self, scope: ScopeKey, evidence_ref: str) -> Optional[EvidencePhoto]:
        raise NotImplementedError

    def discard(self, scope: ScopeKey, evidence_ref: str) -> None:
        """Delete a photo that no punch ended up referencing."""
        raise NotImplementedError
