from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

ENTRY_POINT_DOCUMENTS = ("login.html", "logout.html", "edit.html")
ALLOWED_DOC_EXTS = {".html"}


def _env_path(name: str, default: Path) -> Path:
    env = os.environ.get(name)
    if env:
        p = Path(env)
        return p if p.is_absolute() else (Path.cwd() / p)
    return default


def _env_flag(name: str, default: str = "1") -> bool:
    return str(os.environ.get(name, default)).strip().lower() not in {"0", "false", "no", "off"}


@dataclass
class Settings:
    root: Path
    registry_name: str = "pages.yml"
    template_name: str = "Player.html"
    default_page_name: str = "Main Content"
    backup: bool = True
    backup_keep: int = 5
    entry_points: tuple[str, ...] = field(default=ENTRY_POINT_DOCUMENTS)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            root=_env_path("PAGES_ROOT", Path.cwd()),
            registry_name=os.environ.get("PAGES_REGISTRY") or "pages.yml",
            template_name=os.environ.get("PAGES_TEMPLATE") or "Player.html",
            default_page_name=os.environ.get("PAGES_DEFAULT_NAME") or "Main Content",
            backup=_env_flag("PAGES_BACKUP"),
        )

    @property
    def registry_path(self) -> Path:
        return self.root / self.registry_name

    @property
    def backup_dir(self) -> Path:
        return self.root / "backups"

    @property
    def protected_names(self) -> frozenset[str]:
        names = {self.template_name, self.registry_name, *self.entry_points}
        return frozenset(n.casefold() for n in names)
