"""Deterministic alert fingerprints.

The version prefix is part of the digest input and of the stored value, so
changing the recipe never silently matches rows written under an older one.
"""

import hashlib
from datetime import UTC, datetime

FINGERPRINT_VERSION = 1


def _minute_bucket(observed_at: datetime) -> str:
    if observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=UTC)
    floored = observed_at.astimezone(UTC).replace(second=0, microsecond=0)
    return floored.strftime("%Y-%m-%dT%H:%MZ")


def compute_fingerprint(
    subject_id: int,
    severity: str,
    title: str,
    message: str,
    observed_at: datetime,
    version: int = FINGERPRINT_VERSION,
) -> str:
    parts = [str(subject_id), severity, title, message, _minute_bucket(observed_at)]
    digest = hashlib.sha256()
    digest.update(bytes([version]))
    digest.update("\x1f".join(parts).encode("utf-8"))
    return f"v{version}:{digest.hexdigest()}"


def candidate_fingerprint(candidate) -> str:
    return compute_fingerprint(
        candidate.subject_id,
        candidate.severity.value,
        candidate.title,
        candidate.message,
        candidate.observed_at,
    )
