from pathlib import Path

import pytest

from presentation_pages.app import create_app
from presentation_pages.config import Settings
from presentation_pages.service import PageService

TEMPLATE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Player</title>
</head>
<body>
    <div id="player"></div>
    <script>
        const presentations = [
            {"url": "https://example.com/welcome", "duration": 5000, "originalDuration": 5000},
            {"url": "https://example.com/news", "duration": 12000, "originalDuration": 10000}
        ];
        startPlayer(presentations);
    </script>
</body>
</html>
"""


@pytest.fixture()
def pages_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    (root / "Player.html").write_text(TEMPLATE_HTML, encoding="utf-8")
    return root


@pytest.fixture()
def settings(pages_root: Path) -> Settings:
    return Settings(root=pages_root)


@pytest.fixture()
def service(settings: Settings) -> PageService:
    return PageService.from_settings(settings)


@pytest.fixture()
def client(settings: Settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture()
def template_html() -> str:
    return TEMPLATE_HTML
