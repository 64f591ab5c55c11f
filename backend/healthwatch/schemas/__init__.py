from healthwatch.schemas.alerts import (
    AlertCandidate,
    AlertListResponse,
    AlertResponse,
    EvaluationResponse,
    Severity,
    SubmitResult,
    SubmitStatus,
)
from healthwatch.schemas.preferences import EmailAlertTypes, NotificationPreferences, Recipient
from healthwatch.schemas.readings import (
    CORE_KINDS,
    BloodPressure,
    Reading,
    ReadingCreate,
    ReadingKind,
    ReadingResponse,
    Scalar,
)

__all__ = [
    "AlertCandidate",
    "AlertListResponse",
    "AlertResponse",
    "EvaluationResponse",
    "Severity",
    "SubmitResult",
    "SubmitStatus",
    "EmailAlertTypes",
    "NotificationPreferences",
    "Recipient",
    "CORE_KINDS",
    "BloodPressure",
    "Reading",
    "ReadingCreate",
    "ReadingKind",
    "ReadingResponse",
    "Scalar",
]
