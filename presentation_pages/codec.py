"""Read and rewrite the ``const presentations = [...];`` block of a page document.

The block is located with a narrow pattern rather than an HTML parser: the
rest of the document is free-form and must come back byte-for-byte untouched.
Only the first declaration in a document is used.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from .errors import ParseError
from .models import PresentationEntry

BLOCK_PATTERN = re.compile(r"const\s+presentations\s*=\s*(\[[^\]]*?\]);", re.DOTALL)
BODY_END_PATTERN = re.compile(r"</body\s*>", re.IGNORECASE)
EMPTY_BLOCK = "const presentations = [];"
_NUMBER_PREFIX = re.compile(
    r"\s*[+-]?(?:(?P<whole>\d+)(?P<rest>(?:\.\d*)?(?:[eE][+-]?\d+)?)|\.\d+(?:[eE][+-]?\d+)?)"
)

# Characters that must not appear raw inside an inline <script> payload.
_SCRIPT_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"}


@dataclass
class Extraction:
    entries: list[PresentationEntry] = field(default_factory=list)
    block: str = EMPTY_BLOCK
    found: bool = False


def coerce_duration(value: Any) -> int:
    """Whole milliseconds from whatever a form or a hand-edited page holds.

    Numbers are truncated, strings contribute their leading number
    (``"10s"`` -> 10, ``"2.5"`` -> 2) and anything else counts as 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return 0
    if not isinstance(value, str):
        return 0
    match = _NUMBER_PREFIX.match(value)
    if match is None:
        return 0
    number = match.group(0).strip()
    if match.group("whole") is not None and match.group("rest") == "":
        return int(number)
    try:
        return int(float(number))
    except OverflowError:
        return 0


def _entry_from_raw(item: Any, index: int) -> PresentationEntry:
    if not isinstance(item, dict):
        raise ParseError(f"Presentation {index + 1} is not an object.", code="MalformedPayload")
    url = item.get("url")
    duration = coerce_duration(item.get("duration", 0))
    original = coerce_duration(item.get("originalDuration", duration))
    return PresentationEntry(
        url="" if url is None else str(url),
        duration=duration,
        original_duration=original,
    )


def extract(document: str) -> Extraction:
    match = BLOCK_PATTERN.search(document)
    if match is None:
        return Extraction()
    try:
        raw = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse presentations JSON: {exc}", code="MalformedPayload") from exc
    if not isinstance(raw, list):
        raise ParseError("Presentations block must hold a JSON array.", code="MalformedPayload")
    entries = [_entry_from_raw(item, idx) for idx, item in enumerate(raw)]
    return Extraction(entries=entries, block=match.group(0), found=True)


def render(entries: Iterable[PresentationEntry]) -> str:
    text = json.dumps([e.to_dict() for e in entries], indent=4)
    for char, escaped in _SCRIPT_ESCAPES.items():
        text = text.replace(char, escaped)
    # Entries are flat objects, so the last character is the only structural "]".
    text = text[:-1].replace("]", "\\u005d") + text[-1]
    return f"const presentations = {text};"


def _append_script(document: str, block: str) -> str:
    script = f"<script>\n{block}\n</script>\n"
    closers = list(BODY_END_PATTERN.finditer(document))
    if not closers:
        return document + ("" if document.endswith("\n") or not document else "\n") + script
    at = closers[-1].start()
    return document[:at] + script + document[at:]


def replace(document: str, old_block: str, new_block: str) -> str:
    if old_block and old_block in document:
        return document.replace(old_block, new_block, 1)
    if BLOCK_PATTERN.search(document):
        return BLOCK_PATTERN.sub(lambda _m: new_block, document, count=1)
    return _append_script(document, new_block)


def clear(document: str) -> str:
    return BLOCK_PATTERN.sub(lambda _m: EMPTY_BLOCK, document)
