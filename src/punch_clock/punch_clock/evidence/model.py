from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EvidencePhoto:
    """Ảnh selfie làm bằng chứng cho một lần chấm công."""

    evidence_ref: str
    mime_type: str
    payload: bytes
