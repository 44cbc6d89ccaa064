"""Page operations exposed to the transport layer.

Each public method is one logical action. It returns a result dict with
``status`` set to ``"success"`` or ``"error"``; domain errors raised by the
codec, file manager or registry are turned into error results here and never
escape to the caller.

Adding a page is a two-step write (document, then registry). When the
registry write fails the freshly created document is removed again so no
orphan is left behind.
"""

from __future__ import annotations

import functools
import re
import threading
from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Any, Callable

from . import codec
from .config import ALLOWED_DOC_EXTS, Settings
from .errors import NotFoundError, PageError, ProtectedResourceError, ValidationError
from .files import BackingFileManager
from .logging_config import get_logger, operation_context
from .models import PageEntry, PresentationEntry
from .registry import PageRegistryStore

log = get_logger(__name__)

Result = dict[str, Any]


def page_file_name(page_name: str) -> str:
    """``"My Page!"`` -> ``"mypage.html"``; empty string when nothing usable is left."""
    stem = re.sub(r"[^A-Za-z0-9_-]", "", page_name or "").lower()
    return f"{stem}.html" if stem else ""


def _success(message: str, **payload: Any) -> Result:
    result: Result = {"status": "success", "message": message}
    result.update(payload)
    return result


def _operation(func: Callable[..., Result]) -> Callable[..., Result]:
    @functools.wraps(func)
    def wrapper(self: "PageService", *args: Any, **kwargs: Any) -> Result:
        with self._lock, operation_context(func.__name__):
            try:
                return func(self, *args, **kwargs)
            except PageError as exc:
                log.warning("Rejected [%s]: %s", exc.code, exc.message)
                return exc.to_result()

    return wrapper


def _presentation_columns(presentations: Any) -> list[PresentationEntry]:
    invalid = ValidationError("Invalid presentation data received.", code="InvalidPresentations")
    if not isinstance(presentations, Mapping):
        raise invalid
    urls = presentations.get("url")
    durations = presentations.get("duration")
    if not isinstance(urls, (list, tuple)) or not isinstance(durations, (list, tuple)):
        raise invalid
    if len(urls) != len(durations):
        raise ValidationError(
            f"Got {len(urls)} url(s) but {len(durations)} duration(s).", code="InvalidPresentations"
        )

    entries: list[PresentationEntry] = []
    for url, raw_duration in zip(urls, durations):
        duration = codec.coerce_duration(raw_duration)
        entries.append(
            PresentationEntry(
                url="" if url is None else str(url),
                duration=duration,
                original_duration=duration,
            )
        )
    return entries


class PageService:
    def __init__(self, registry: PageRegistryStore, files: BackingFileManager, template_name: str) -> None:
        self.registry = registry
        self.files = files
        self.template_name = template_name
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PageService":
        files = BackingFileManager(settings.root, settings.protected_names)
        registry = PageRegistryStore(
            settings.registry_path,
            PageEntry(name=settings.default_page_name, file=settings.template_name),
            backup_dir=settings.backup_dir if settings.backup else None,
            backup_keep=settings.backup_keep,
        )
        return cls(registry, files, settings.template_name)

    @_operation
    def list_pages(self) -> Result:
        registry = self.registry.load()
        return _success(f"{len(registry)} page(s).", pages=registry.to_list())

    @_operation
    def add_page(self, page_name: str) -> Result:
        name = (page_name or "").strip()
        if not name:
            raise ValidationError("Page name cannot be empty.", code="EmptyName")
        file = page_file_name(name)
        if not file:
            raise ValidationError(
                "Page name must contain at least one letter, digit, '-' or '_'.", code="EmptyName"
            )
        if self.files.is_protected(file):
            raise ProtectedResourceError(f"'{file}' is reserved for the system.", code="Protected")

        registry = self.registry.load()
        if registry.has_name(name):
            raise ValidationError("A page with this name already exists.", code="DuplicateName")
        if registry.has_file(file):
            raise ValidationError("A file for this page name already exists.", code="DuplicateFile")

        self.files.create_from_template(file, self.template_name)
        try:
            self.registry.save(registry.appended(PageEntry(name=name, file=file)))
        except Exception as exc:
            self._discard_orphan(file, exc)
            raise

        log.info("Added page %r (%s)", name, file)
        return _success(f'Page "{name}" added successfully!', pageName=name, pageFile=file)

    def _discard_orphan(self, file: str, cause: Exception) -> None:
        try:
            self.files.delete(file)
        except PageError as cleanup:
            log.error("Registry write failed and %s could not be removed: %s", file, cleanup.message)
            if isinstance(cause, PageError):
                cause.message = f"{cause.message} The new file '{file}' could not be removed: {cleanup.message}"
                cause.extra["orphanedFile"] = file
            return
        log.info("Removed %s after failed registry write", file)

    @_operation
    def remove_page(self, page_file: str) -> Result:
        file = (page_file or "").strip()
        if not file or self.files.is_protected(file):
            raise ProtectedResourceError("Cannot remove this critical system file.", code="Protected")

        registry = self.registry.load()
        entry = registry.find_by_file(file)
        if entry is None:
            raise NotFoundError(f"Page not found in {self.registry.path.name}.", code="NotFound")
        remaining = registry.without_file(entry.file)
        if len(remaining) < 1:
            raise ProtectedResourceError(
                "Cannot remove the last page. At least one page must exist.", code="LastPageProtected"
            )

        self.files.delete(entry.file)
        try:
            self.registry.save(remaining)
        except PageError:
            log.error("Deleted %s but the registry still lists it", entry.file)
            raise

        log.info("Removed page %r (%s)", entry.name, entry.file)
        return _success("Page and its file removed successfully!")

    @_operation
    def load_page_content(self, target_file: str) -> Result:
        target = (target_file or "").strip()
        extraction = codec.extract(self.files.read(target))
        return _success(
            f"Loaded {len(extraction.entries)} presentation(s) from {target}.",
            data=[e.to_dict() for e in extraction.entries],
        )

    @_operation
    def save_page_content(self, target_file: str, presentations: Any) -> Result:
        target = (target_file or "").strip()
        if PurePosixPath(target).suffix.lower() not in ALLOWED_DOC_EXTS or not self.files.exists(target):
            raise ValidationError(f"Invalid target file specified for saving: {target}", code="InvalidTarget")
        entries = _presentation_columns(presentations)

        document = self.files.read(target)
        current = codec.extract(document)
        updated = codec.replace(document, current.block, codec.render(entries))
        self.files.write(target, updated)

        log.info("Saved %d presentation(s) to %s", len(entries), target)
        return _success(f"Presentations saved to {target}.")
