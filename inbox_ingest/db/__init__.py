"""Relational persistence for processed messages."""

from .engine import Database
from .models import Base, Email, EmailAttachment
from .repository import EmailRepository

__all__ = [
    "Base",
    "Database",
    "Email",
    "EmailAttachment",
    "EmailRepository",
]
