"""SQLAlchemy declarative base and common column mixins for PRManager.

This module defines the DeclarativeBase class and a TimestampMixin that
provides created_at and updated_at columns shared across all models.
Primary keys are declared per model because teams, users and pull
requests are identified by caller-supplied strings.

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     id: Mapped[str] = mapped_column(Text, primary_key=True)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all PRManager models."""

    pass


class TimestampMixin:
    """Mixin providing created_at and updated_at columns.

    This mixin should be listed before Base in the class hierarchy
    to ensure the columns are included in the model's table definition.

    Attributes:
        created_at: Timestamp set by the database on row creation.
        updated_at: Timestamp set by the database on row creation and
                    updated on each modification.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
