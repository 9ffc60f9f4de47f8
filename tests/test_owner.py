# Tests for cfgsync.owner
# Stable owner identifiers in project properties

import threading
import uuid

import yaml

from cfgsync.owner import OWNER_ID_KEY, PropertiesStore, get_owner_id


class TestPropertiesStore:
    """Tests for PropertiesStore."""

    def test_location(self, temp_dir):
        store = PropertiesStore(temp_dir)
        assert store.path == temp_dir / ".cfgsync" / "properties.yaml"

    def test_get_missing(self, temp_dir):
        assert PropertiesStore(temp_dir).get("anything") is None

    def test_set_and_get(self, temp_dir):
        store = PropertiesStore(temp_dir)
        store.set("key", "value")
        assert PropertiesStore(temp_dir).get("key") == "value"

    def test_set_keeps_other_keys(self, temp_dir):
        store = PropertiesStore(temp_dir)
        store.set("a", "1")
        store.set("b", "2")
        with open(store.path, encoding="utf-8") as f:
            assert yaml.safe_load(f) == {"a": "1", "b": "2"}

    def test_get_or_set(self, temp_dir):
        store = PropertiesStore(temp_dir)
        assert store.get_or_set("k", lambda: "first") == ("first", True)
        assert store.get_or_set("k", lambda: "second") == ("first", False)


class TestGetOwnerId:
    """Tests for get_owner_id()."""

    def test_generates_uuid(self, temp_dir):
        owner_id = get_owner_id(PropertiesStore(temp_dir))
        assert str(uuid.UUID(owner_id)) == owner_id

    def test_stable(self, temp_dir):
        first = get_owner_id(PropertiesStore(temp_dir))
        assert get_owner_id(PropertiesStore(temp_dir)) == first

    def test_existing_id_kept(self, temp_dir):
        store = PropertiesStore(temp_dir)
        store.set(OWNER_ID_KEY, "legacy-id")
        assert get_owner_id(store) == "legacy-id"

    def test_distinct_projects(self, temp_dir):
        (temp_dir / "a").mkdir()
        (temp_dir / "b").mkdir()
        assert get_owner_id(PropertiesStore(temp_dir / "a")) != get_owner_id(PropertiesStore(temp_dir / "b"))

    def test_concurrent_first_use(self, temp_dir):
        store = PropertiesStore(temp_dir)
        results = []

        def worker():
            results.append(get_owner_id(store))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(results)) == 1
