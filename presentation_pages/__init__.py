"""Page registry and embedded presentation list management."""

from .config import Settings
from .errors import (
    NotFoundError,
    PageError,
    ParseError,
    PermissionDeniedError,
    ProtectedResourceError,
    ValidationError,
)
from .models import PageEntry, PresentationEntry, Registry
from .service import PageService

__all__ = [
    "NotFoundError",
    "PageEntry",
    "PageError",
    "PageService",
    "ParseError",
    "PermissionDeniedError",
    "PresentationEntry",
    "ProtectedResourceError",
    "Registry",
    "Settings",
    "ValidationError",
]
