from __future__ import annotations

import os
import re
from pathlib import Path
from shutil import copy2
from typing import Iterable

from . import codec
from .errors import NotFoundError, PermissionDeniedError, ProtectedResourceError, ValidationError
from .logging_config import get_logger

log = get_logger(__name__)


def _normalize_rel(path: str) -> str:
    cleaned = (path or "").strip().replace("\\", "/")
    return re.sub(r"/+", "/", cleaned)


def _safe_rel_path(rel: str) -> str:
    rel = _normalize_rel(rel)
    if not rel or rel.startswith("/") or rel.startswith("~"):
        raise ValidationError(f"Invalid file name: {rel or '(empty)'}", code="InvalidTarget")
    parts = Path(rel).parts
    if any(part in ("..", ".") for part in parts):
        raise ValidationError(f"Invalid file name: {rel}", code="InvalidTarget")
    return rel


class BackingFileManager:
    """Creates, reads, writes and deletes page documents under one root directory."""

    def __init__(self, root: Path, protected: Iterable[str] = ()) -> None:
        self.root = Path(root)
        self.protected = frozenset(name.casefold() for name in protected)

    def path_for(self, name: str) -> Path:
        return self.root / _safe_rel_path(name)

    def is_protected(self, name: str) -> bool:
        return _normalize_rel(name).casefold() in self.protected

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_file()
        except ValidationError:
            return False

    def read(self, name: str) -> str:
        path = self.path_for(name)
        if not path.is_file():
            raise NotFoundError(f"Target HTML file not found: {name}", code="NotFound")
        try:
            with path.open("r", encoding="utf-8", errors="surrogateescape", newline="") as handle:
                return handle.read()
        except OSError as exc:
            raise PermissionDeniedError(f"Failed to read {name}: {exc}", code="NotReadable") from exc

    def write(self, name: str, text: str) -> None:
        path = self.path_for(name)
        try:
            with path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as handle:
                handle.write(text)
        except OSError as exc:
            raise PermissionDeniedError(
                f"Failed to write updated content to {name}: {exc}", code="WriteDenied"
            ) from exc

    def create_from_template(self, new_name: str, template_name: str) -> Path:
        if self.is_protected(new_name):
            raise ProtectedResourceError(f"Cannot create core system file: {new_name}.", code="Protected")
        target = self.path_for(new_name)
        template = self.path_for(template_name)
        if not template.is_file():
            raise NotFoundError(
                f"Source template ({template_name}) not found to create new page file.", code="TemplateMissing"
            )
        if target.exists():
            raise ValidationError(
                f"File '{new_name}' already exists. Choose a different page name.", code="AlreadyExists"
            )
        if not os.access(target.parent, os.W_OK):
            raise PermissionDeniedError(
                f"Directory for '{new_name}' is not writable. Check permissions.", code="NotWritable"
            )
        try:
            copy2(template, target)
        except OSError as exc:
            raise PermissionDeniedError(f"Failed to create new page file '{new_name}': {exc}", code="NotWritable") from exc

        # New pages start empty whatever the template currently shows.
        try:
            self.write(new_name, codec.clear(self.read(new_name)))
        except Exception:
            target.unlink(missing_ok=True)
            raise
        log.info("Created %s from template %s", new_name, template_name)
        return target

    def delete(self, name: str) -> None:
        if self.is_protected(name):
            raise ProtectedResourceError(f"Cannot delete core system file: {name}.", code="Protected")
        path = self.path_for(name)
        if not path.is_file():
            raise NotFoundError(f"File '{name}' not found for deletion.", code="NotFound")
        if not os.access(path.parent, os.W_OK):
            raise PermissionDeniedError(f"File '{name}' is not writable. Check permissions.", code="NotWritable")
        try:
            path.unlink()
        except OSError as exc:
            raise PermissionDeniedError(f"Failed to delete file '{name}': {exc}", code="NotWritable") from exc
        log.info("Deleted %s", name)
