"""
Unit tests for local persistent storage
"""

import json

import pytest
from filelock import FileLock

from heypaytm.exceptions import StorageError
from heypaytm.storage import JsonFileStorage, MemoryStorage, create_storage


@pytest.fixture
def file_storage(tmp_path):
    return JsonFileStorage(tmp_path / "store" / "local_storage.json", lock_timeout=1)


class TestMemoryStorage:

    def test_missing_key_is_none(self):
        assert MemoryStorage().load("table_sessions") is None

    def test_values_are_copied(self):
        storage = MemoryStorage()
        value = [{"tableNumber": 1}]
        storage.save("key", value)

        value.append({"tableNumber": 2})
        loaded = storage.load("key")
        loaded.append({"tableNumber": 3})

        assert storage.load("key") == [{"tableNumber": 1}]

    def test_remove_and_clear(self):
        storage = MemoryStorage()
        storage.save("a", 1)
        storage.save("b", 2)

        storage.remove("a")
        storage.remove("missing")
        assert storage.load("a") is None

        storage.clear()
        assert storage.load("b") is None

    def test_unserializable_value(self):
        with pytest.raises(StorageError):
            MemoryStorage().save("key", {"when": object()})


class TestJsonFileStorage:
    """Test the JSON document backend"""

    def test_save_and_load(self, file_storage):
        file_storage.save("table_sessions", [{"sessionId": "T1-ABC"}])
        assert file_storage.load("table_sessions") == [{"sessionId": "T1-ABC"}]

    def test_keys_share_one_document(self, file_storage):
        file_storage.save("table_sessions", [])
        file_storage.save("sent_bills", [{"total": 84}])

        document = json.loads(file_storage.path.read_text(encoding="utf-8"))
        assert document == {"table_sessions": [], "sent_bills": [{"total": 84}]}

    def test_survives_new_instance(self, file_storage):
        file_storage.save("key", {"a": 1})
        assert JsonFileStorage(file_storage.path).load("key") == {"a": 1}

    def test_missing_file_reads_none(self, file_storage):
        assert file_storage.load("anything") is None

    def test_remove(self, file_storage):
        file_storage.save("a", 1)
        file_storage.save("b", 2)
        file_storage.remove("a")

        assert file_storage.load("a") is None
        assert file_storage.load("b") == 2

    def test_corrupt_file_raises_storage_error(self, file_storage):
        file_storage.path.parent.mkdir(parents=True, exist_ok=True)
        file_storage.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            file_storage.load("table_sessions")

    def test_bad_value_leaves_file_untouched(self, file_storage):
        file_storage.save("key", "kept")
        with pytest.raises(StorageError):
            file_storage.save("key", {"bad": object()})
        assert file_storage.load("key") == "kept"

    def test_lock_timeout_raises_storage_error(self, tmp_path):
        path = tmp_path / "locked.json"
        storage = JsonFileStorage(path, lock_timeout=0.1)

        # A separate FileLock object on the same file stands in for another process
        with FileLock(str(path) + ".lock"):
            with pytest.raises(StorageError):
                storage.save("key", 1)

    def test_create_storage_uses_settings_path(self, settings):
        storage = create_storage(settings)
        assert storage.path == settings.storage_path
        assert storage.backend_name == "json_file"
