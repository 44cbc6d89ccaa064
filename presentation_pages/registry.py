from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from shutil import copy2
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError

from .errors import ParseError, PermissionDeniedError
from .logging_config import get_logger
from .models import PageEntry, Registry

log = get_logger(__name__)

yaml = YAML()
yaml.preserve_quotes = True
yaml.indent(mapping=2, sequence=4, offset=2)
# Long page names stay on one line.
yaml.width = 4096


def _now_stamp() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S")


def _backup_file(path: Path, backup_dir: Path, keep: int = 5) -> Path | None:
    if not path.exists():
        return None
    backup_dir.mkdir(parents=True, exist_ok=True)
    backup_path = backup_dir / f"{path.name}.bak-{_now_stamp()}"
    copy2(path, backup_path)

    backups = sorted(
        backup_dir.glob(f"{path.name}.bak-*"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for old in backups[keep:]:
        try:
            old.unlink()
        except OSError:
            pass

    return backup_path


def _entry_from_raw(item: Any, index: int) -> PageEntry:
    if not isinstance(item, dict):
        raise ParseError(f"Page {index + 1} in the registry is not a mapping.", code="CorruptStore")
    name = item.get("name")
    file = item.get("file")
    if not isinstance(name, str) or not isinstance(file, str):
        raise ParseError(f"Page {index + 1} in the registry needs a `name` and a `file`.", code="CorruptStore")
    return PageEntry(name=str(name), file=str(file))


class PageRegistryStore:
    """The ``pages.yml`` file mapping display names to page documents."""

    def __init__(
        self,
        path: Path,
        default_entry: PageEntry,
        *,
        backup_dir: Path | None = None,
        backup_keep: int = 5,
    ) -> None:
        self.path = Path(path)
        self.default_entry = default_entry
        self.backup_dir = backup_dir
        self.backup_keep = backup_keep

    def load(self) -> Registry:
        if not self.path.exists():
            registry = Registry([self.default_entry])
            try:
                self._dump(registry)
            except OSError as exc:
                raise PermissionDeniedError(
                    f"Failed to create initial {self.path.name}. Check permissions.", code="WriteDenied"
                ) from exc
            log.info("Initialized %s with page %r", self.path.name, self.default_entry.name)
            return registry

        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = yaml.load(handle)
        except (YAMLError, UnicodeDecodeError) as exc:
            raise ParseError(f"Failed to load {self.path.name}. Is it valid YAML? {exc}", code="CorruptStore") from exc
        except OSError as exc:
            raise PermissionDeniedError(f"Failed to read {self.path.name}: {exc}", code="NotReadable") from exc

        if not isinstance(data, dict):
            raise ParseError(f"{self.path.name} must contain a mapping at the top level.", code="CorruptStore")
        pages = data.get("pages")
        if not isinstance(pages, list) or not pages:
            raise ParseError(f"{self.path.name} must list at least one page under `pages`.", code="CorruptStore")
        return Registry([_entry_from_raw(item, idx) for idx, item in enumerate(pages)])

    def save(self, registry: Registry) -> Path | None:
        """Rewrite the whole registry; returns the backup of the previous file, if one was made."""
        try:
            backup = _backup_file(self.path, self.backup_dir, self.backup_keep) if self.backup_dir else None
            self._dump(registry)
        except OSError as exc:
            raise PermissionDeniedError(
                f"Failed to write to {self.path.name}. Check file permissions. ({exc})", code="WriteDenied"
            ) from exc
        log.info("Wrote %s with %d page(s)", self.path.name, len(registry))
        return backup

    def _dump(self, registry: Registry) -> None:
        pages = CommentedSeq()
        for entry in registry:
            pages.append(CommentedMap([("name", entry.name), ("file", entry.file)]))
        document = CommentedMap([("pages", pages)])
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f".{self.path.name}.tmp")
        try:
            with tmp.open("w", encoding="utf-8") as handle:
                yaml.dump(document, handle)
            os.replace(tmp, self.path)
        finally:
            tmp.unlink(missing_ok=True)
