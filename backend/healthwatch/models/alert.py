from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from healthwatch.models.base import Base, TimestampMixin

FINGERPRINT_CONSTRAINT = "uq_alerts_fingerprint"


class Alert(Base, TimestampMixin):
    """Persisted health alert.

    Rows are append-only from the evaluation side; only is_read is ever
    updated, by the inbox endpoints.
    """

    __tablename__ = "alerts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    severity: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="critical|warning|info",
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False, default="System")
    related_kind: Mapped[str] = mapped_column(String(40), nullable=False)
    observed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # NULLs are permitted and never collide; present values are unique.
    fingerprint: Mapped[str | None] = mapped_column(String(80), nullable=True)

    __table_args__ = (
        UniqueConstraint("fingerprint", name=FINGERPRINT_CONSTRAINT),
        Index("ix_alerts_subject_severity_created", "subject_id", "severity", "created_at"),
        Index("ix_alerts_subject_title_created", "subject_id", "title", "created_at"),
        Index("ix_alerts_subject_read_observed", "subject_id", "is_read", "observed_at"),
    )

    def __repr__(self) -> str:
        return f"<Alert(id={self.id}, subject={self.subject_id}, severity='{self.severity}', title='{self.title}')>"
