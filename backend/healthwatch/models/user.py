from typing import Any

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from healthwatch.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Subject whose readings are evaluated and who receives alert emails.

    Owned by the profile subsystem; this service only reads it.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notification_settings: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        comment="emailNotifications, healthAlerts, emailAlertTypes{critical,warning,info}",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
