import json
import logging

from grammarhub.client.config import ClientConfig
from grammarhub.client.storage import LocalStorage, SessionStorage


def test_session_storage_round_trip():
    storage = SessionStorage()
    assert storage.get_item("missing") is None
    assert storage.set_item("count", 3) is True
    assert storage.get_item("count") == "3"
    storage.remove_item("count")
    assert storage.get_item("count") is None


def test_get_json_falls_back_on_garbage(caplog):
    storage = SessionStorage()
    storage.set_item("bad", "{oops")
    with caplog.at_level(logging.WARNING, logger="grammarhub.client.storage"):
        assert storage.get_json("bad", default=[]) == []
    assert "Discarding unparseable value for bad" in caplog.text


def test_local_storage_persists_between_instances(tmp_path):
    path = tmp_path / "nested" / "store.json"
    first = LocalStorage(path)
    first.set_json("grammarhub_sync_queue", [{"subject": "tenses"}])
    first.set_item("grammarhub_student_id", "STU001")

    second = LocalStorage(path)

    assert second.get_json("grammarhub_sync_queue") == [{"subject": "tenses"}]
    assert second.get_item("grammarhub_student_id") == "STU001"
    assert json.loads(path.read_text(encoding="utf-8"))["grammarhub_student_id"] == "STU001"
    assert not (tmp_path / "nested" / "store.json.tmp").exists()


def test_local_storage_clear(tmp_path):
    storage = LocalStorage(tmp_path / "store.json")
    storage.set_item("a", "1")
    storage.clear()
    assert LocalStorage(tmp_path / "store.json").get_item("a") is None


def test_unreadable_file_starts_empty(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text("not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="grammarhub.client.storage"):
        storage = LocalStorage(path)
    assert storage.get_item("anything") is None
    assert "unreadable" in caplog.text


def test_non_string_values_are_ignored_on_load(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"keep": "yes", "drop": 5}), encoding="utf-8")
    storage = LocalStorage(path)
    assert storage.get_item("keep") == "yes"
    assert storage.get_item("drop") is None


def test_write_failure_returns_false(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    storage = LocalStorage(blocker / "store.json")
    with caplog.at_level(logging.WARNING, logger="grammarhub.client.storage"):
        assert storage.set_item("a", "1") is False
    assert "Local storage save failed" in caplog.text
    # The in-memory value still serves this run.
    assert storage.get_item("a") == "1"


def test_client_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GRAMMARHUB_BACKEND_URL", " https://api.example.com/ ")
    monkeypatch.setenv("GRAMMARHUB_STORAGE_DIR", str(tmp_path))
    config = ClientConfig.from_env()
    assert config.backend_url == "https://api.example.com"
    assert config.local_storage_path == tmp_path / "local_storage.json"


def test_client_config_without_backend():
    assert ClientConfig.from_env().backend_url is None
