"""Declarative base shared by all models."""

from advanced_alchemy.base import UUIDAuditBase


class Base(UUIDAuditBase):
    """Abstract base: UUID primary key plus ``created_at``/``updated_at``."""

    __abstract__ = True
