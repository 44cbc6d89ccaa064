import pytest

from presentation_pages.errors import ParseError, PermissionDeniedError
from presentation_pages.models import PageEntry, Registry
from presentation_pages.registry import PageRegistryStore

DEFAULT = PageEntry(name="Main Content", file="Player.html")


@pytest.fixture()
def store(tmp_path):
    return PageRegistryStore(tmp_path / "pages.yml", DEFAULT, backup_dir=tmp_path / "backups")


def test_load_initializes_missing_store(store):
    registry = store.load()
    assert registry.entries == [DEFAULT]
    assert store.path.exists()
    text = store.path.read_text(encoding="utf-8")
    assert "pages:" in text
    assert "name: Main Content" in text
    assert "file: Player.html" in text
    assert store.load().entries == [DEFAULT]


def test_save_and_reload_keeps_order(store):
    entries = [DEFAULT, PageEntry("Lobby", "lobby.html"), PageEntry("Café: Menu", "cafmenu.html")]
    store.save(Registry(entries))
    assert store.load().entries == entries


def test_save_keeps_backup_of_previous_file(store, tmp_path):
    store.load()
    backup = store.save(Registry([DEFAULT, PageEntry("Lobby", "lobby.html")]))
    assert backup is not None and backup.exists()
    assert "Lobby" not in backup.read_text(encoding="utf-8")
    assert list((tmp_path / "backups").glob("pages.yml.bak-*"))


def test_save_without_backup_dir(tmp_path):
    store = PageRegistryStore(tmp_path / "pages.yml", DEFAULT)
    store.load()
    assert store.save(Registry([DEFAULT])) is None
    assert not (tmp_path / "backups").exists()


@pytest.mark.parametrize(
    "content",
    [
        "pages: [unclosed\n",
        "- just\n- a list\n",
        "pages: []\n",
        "pages:\n  - name: Lobby\n",
        "pages:\n  - plain string\n",
        "",
    ],
)
def test_corrupt_store(store, content):
    store.path.write_text(content, encoding="utf-8")
    with pytest.raises(ParseError) as exc:
        store.load()
    assert exc.value.code == "CorruptStore"


def test_save_failure_is_write_denied(store, monkeypatch):
    store.load()
    before = store.path.read_text(encoding="utf-8")

    def boom(registry):
        raise OSError("read-only file system")

    monkeypatch.setattr(store, "_dump", boom)
    with pytest.raises(PermissionDeniedError) as exc:
        store.save(Registry([DEFAULT, PageEntry("Lobby", "lobby.html")]))
    assert exc.value.code == "WriteDenied"
    assert store.path.read_text(encoding="utf-8") == before


def test_non_utf8_store_is_corrupt(store):
    store.path.write_bytes(b"pages:\n  - name: \xff\xfe\n    file: lobby.html\n")
    with pytest.raises(ParseError) as exc:
        store.load()
    assert exc.value.code == "CorruptStore"
