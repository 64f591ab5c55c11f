from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.CRITICAL: 2, Severity.WARNING: 1, Severity.INFO: 0}


@dataclass(frozen=True)
class AlertCandidate:
    """Unpersisted alert proposal produced by a generator."""

    subject_id: int
    severity: Severity
    title: str
    message: str
    related_kind: str
    observed_at: datetime
    source: str = "System"


class SubmitStatus(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"


@dataclass
class SubmitResult:
    status: SubmitStatus
    candidate: AlertCandidate
    alert: object | None = None

    @property
    def suppressed(self) -> bool:
        return self.status is not SubmitStatus.CREATED


class AlertResponse(BaseModel):
    """Alert as returned by the inbox endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    subject_id: int
    severity: Severity
    title: str
    message: str
    source: str
    related_kind: str
    observed_at: datetime
    created_at: datetime
    is_read: bool


class AlertListResponse(BaseModel):
    data: list[AlertResponse]
    total: int
    unread: int
    skip: int
    limit: int


class EvaluationResponse(BaseModel):
    """Outcome of one evaluation pass for a subject."""

    subject_id: int
    candidates: int
    created: int
    suppressed: int
    alert_ids: list[int]
