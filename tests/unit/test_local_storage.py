"""Tests for local blob storage."""
import pytest

from fitcompare.storage.local import KEY_PREFIX, LocalObjectStorage, StorageNotFoundError


class TestStoreAndFetch:
    def test_round_trip(self, storage: LocalObjectStorage):
        key = storage.store(b"\x0e\x10fit-bytes", "ride.fit")
        assert storage.fetch(key) == b"\x0e\x10fit-bytes"

    def test_key_layout(self, storage: LocalObjectStorage):
        key = storage.store(b"x", "Morning Ride.fit")
        assert key.startswith(f"{KEY_PREFIX}/")
        assert key.endswith("-Morning_Ride.fit")

    def test_same_name_gets_distinct_keys(self, storage: LocalObjectStorage):
        assert storage.store(b"a", "ride.fit") != storage.store(b"b", "ride.fit")

    def test_client_path_components_are_stripped(self, storage: LocalObjectStorage):
        key = storage.store(b"x", "../../etc/passwd.fit")
        assert ".." not in key
        assert (storage.root / key).is_file()

    def test_fetch_unknown_key(self, storage: LocalObjectStorage):
        with pytest.raises(StorageNotFoundError):
            storage.fetch("fit-files/nope.fit")

    def test_fetch_outside_root_rejected(self, storage: LocalObjectStorage, tmp_path):
        (tmp_path / "secret.fit").write_bytes(b"secret")
        with pytest.raises(StorageNotFoundError):
            storage.fetch("../secret.fit")


class TestDelete:
    def test_delete_removes_blob(self, storage: LocalObjectStorage):
        key = storage.store(b"x", "ride.fit")
        storage.delete(key)
        with pytest.raises(StorageNotFoundError):
            storage.fetch(key)

    def test_delete_unknown_key(self, storage: LocalObjectStorage):
        with pytest.raises(StorageNotFoundError):
            storage.delete("fit-files/nope.fit")
