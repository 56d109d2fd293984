"""Closed enumerations for role and status columns."""

import enum

from sqlalchemy import Enum


class UserRole(str, enum.Enum):
    CLIENT = "client"
    ADMIN = "admin"
    SUPPORT = "support"


STAFF_ROLES = (UserRole.ADMIN, UserRole.SUPPORT)


class ProjectStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class MilestoneStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ChatSessionStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class TicketPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContactStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def enum_column_type(enum_cls: type[enum.Enum]) -> Enum:
    """String-backed column type that rejects values outside ``enum_cls``."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )
