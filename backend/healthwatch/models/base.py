from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class TimestampMixin:
    """Adds server-populated created_at / updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


def model_to_dict(instance: Base) -> dict[str, Any]:
    """Return column values of a mapped instance keyed by attribute name."""
    return {
        attr.key: getattr(instance, attr.key)
        for attr in inspect(instance).mapper.column_attrs
    }
