from .base import Base  # noqa: F401
from .user import User  # noqa: F401
from .contact import Contact  # noqa: F401
from .audit_log import AuditLog  # noqa: F401

# Project/milestone and chat tables live in app.projects.models and
# app.chat.models; import those modules before create_all / autogenerate.
