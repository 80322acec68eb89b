"""Tests for participant identity stores."""

import json

from pokerroom.adapters.identity_file import FileIdentityStore, InMemoryIdentityStore


class TestFileIdentityStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "state" / "identity.json"
        store = FileIdentityStore(path)

        store.set_identity("ABCDE2", "Bob")

        assert FileIdentityStore(path).get_identity("ABCDE2") == "Bob"

    def test_clear(self, tmp_path):
        path = tmp_path / "identity.json"
        store = FileIdentityStore(path)
        store.set_identity("ABCDE2", "Bob")
        store.set_identity("ABCDE3", "Ann")

        store.clear_identity("ABCDE2")

        assert json.loads(path.read_text(encoding="utf-8")) == {"ABCDE3": "Ann"}

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "identity.json"
        path.write_text("{not json", encoding="utf-8")

        store = FileIdentityStore(path)

        assert store.get_identity("ABCDE2") is None


class TestInMemoryIdentityStore:
    def test_roundtrip(self):
        store = InMemoryIdentityStore({"ABCDE2": "Bob"})
        assert store.get_identity("ABCDE2") == "Bob"
        store.clear_identity("ABCDE2")
        store.clear_identity("ABCDE2")
        assert store.get_identity("ABCDE2") is None
