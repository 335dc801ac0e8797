"""Tests for the local embedding cache."""

import json

import pytest

from helpcopilot.rag.embedding_store import EmbeddingStore, list_collections


class TestWrite:
    def test_write_then_read_round_trip(self, store):
        store.write("dbatools", "2.1.3", "Get-DbaDatabase", "get databases", [0.1, 0.2, 0.3])

        records = store.read_latest("dbatools")

        assert len(records) == 1
        assert records[0].item_id == "Get-DbaDatabase"
        assert records[0].text == "get databases"
        assert records[0].embedding == [0.1, 0.2, 0.3]

    def test_file_layout_and_keys(self, store, settings):
        store.write("dbatools", "2.1.3", "Get-DbaDatabase", "text", [1.0])

        path = settings.config_dir / "dbatools" / "2.1.3" / "Get-DbaDatabase.json"
        assert path.exists()
        assert json.loads(path.read_text()) == {
            "Command": "Get-DbaDatabase",
            "Text": "text",
            "Embedding": [1.0],
        }

    def test_existing_record_is_kept_without_force(self, store):
        assert store.write("mod", "1.0.0", "cmd", "first", [1.0]) is True
        assert store.write("mod", "1.0.0", "cmd", "second", [2.0]) is False

        assert store.read_latest("mod")[0].text == "first"

    def test_force_overwrites(self, store):
        store.write("mod", "1.0.0", "cmd", "first", [1.0])
        assert store.write("mod", "1.0.0", "cmd", "second", [2.0], force=True) is True

        record = store.read_latest("mod")[0]
        assert record.text == "second"
        assert record.embedding == [2.0]

    @pytest.mark.parametrize("item_id", ["../escape", "a/b", "", ".."])
    def test_rejects_path_segments(self, store, item_id):
        with pytest.raises(ValueError):
            store.write("mod", "1.0.0", item_id, "text", [1.0])

    def test_exists(self, store):
        assert store.exists("mod", "1.0.0", "cmd") is False
        store.write("mod", "1.0.0", "cmd", "text", [1.0])
        assert store.exists("mod", "1.0.0", "cmd") is True


class TestReadLatest:
    def test_missing_collection_is_empty(self, store):
        assert store.read_latest("nothing") == []
        assert store.embedding_table("nothing") == {}

    def test_greatest_version_wins(self, store):
        store.write("mod", "1.0.0", "old", "old text", [1.0])
        store.write("mod", "2.0.0", "new", "new text", [2.0])

        records = store.read_latest("mod")

        assert [r.item_id for r in records] == ["new"]

    def test_version_sort_is_lexical_not_semantic(self, store):
        # Known limitation: plain string sort puts "9.0.0" after "10.0.0"
        store.write("mod", "9.0.0", "from_nine", "nine", [9.0])
        store.write("mod", "10.0.0", "from_ten", "ten", [10.0])

        assert store.latest_version("mod") == "9.0.0"
        assert [r.item_id for r in store.read_latest("mod")] == ["from_nine"]

    def test_corrupt_record_is_skipped(self, store, settings):
        store.write("mod", "1.0.0", "good", "fine", [1.0, 0.0])
        version_dir = settings.config_dir / "mod" / "1.0.0"
        (version_dir / "broken.json").write_text("{not json")
        (version_dir / "partial.json").write_text(json.dumps({"Command": "partial"}))

        records = store.read_latest("mod")

        assert [r.item_id for r in records] == ["good"]

    def test_dbatools_scenario(self, store):
        commands = [
            "Get-DbaDatabase",
            "Copy-DbaDatabase",
            "Backup-DbaDatabase",
            "Restore-DbaDatabase",
            "Test-DbaConnection",
        ]
        for i, command in enumerate(commands):
            store.write("dbatools", "2.1.3", command, f"help for {command}", [float(i), 1.0, 0.5])

        records = store.read_latest("dbatools")

        assert len(records) == 5
        assert all(r.text for r in records)
        assert {len(r.embedding) for r in records} == {3}
        assert set(store.embedding_table("dbatools")) == set(commands)


class TestListCollections:
    def test_missing_base_path_is_empty(self, tmp_path):
        assert list_collections(tmp_path / "absent") == []

    def test_one_entry_per_directory(self, store, settings):
        store.write("alpha", "1.0", "a", "text", [1.0])
        store.write("beta", "0.1", "b", "text", [1.0])
        store.write("beta", "0.2", "b", "text", [1.0])
        (settings.config_dir / "config.json").write_text("{}")

        collections = EmbeddingStore(settings.config_dir).list_collections()

        assert [c.name for c in collections] == ["alpha", "beta"]
        assert collections[1].versions == ["0.1", "0.2"]
        assert collections[0].path == settings.config_dir / "alpha"
