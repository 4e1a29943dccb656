import json
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from gpu_tracker.core.errors import StoreReadError, StoreWriteError
from gpu_tracker.db.store import JsonFileStore, MemoryStore, empty_document


SAMPLE = {
    "gpu_database": {
        "version": 2,
        "gpus": [
            {
                "id": 1,
                "vendor": "NVIDIA",
                "name": "RTX 3090",
                "generation": "Ampere",
                "serial_number": "SN-3090-A",
                "owner": "vision-lab",
                "borrowee": None,
                "status": "available",
                "additional_info": {"memory": "24GB", "release_year": 2020},
                "rack": "B2",
            }
        ],
    },
    "exported_by": "asset-sync",
}


@pytest.fixture()
def db_path(tmp_path):
    path = tmp_path / "gpu_database.json"
    path.write_text(json.dumps(SAMPLE, indent=2), encoding="utf-8")
    return path


def test_load_returns_whole_document(db_path):
    store = JsonFileStore(db_path)

    assert store.load() == SAMPLE


def test_save_overwrites_file_and_keeps_unknown_keys(db_path):
    store = JsonFileStore(db_path)
    document = store.load()
    document["gpu_database"]["gpus"][0]["status"] = "in-use"

    store.save(document)

    on_disk = json.loads(db_path.read_text(encoding="utf-8"))
    assert on_disk["gpu_database"]["gpus"][0]["status"] == "in-use"
    assert on_disk["gpu_database"]["gpus"][0]["rack"] == "B2"
    assert on_disk["exported_by"] == "asset-sync"
    assert db_path.read_text(encoding="utf-8").startswith('{\n  "gpu_database"')


def test_load_missing_file_raises(tmp_path):
    store = JsonFileStore(tmp_path / "absent.json")

    with pytest.raises(StoreReadError) as excinfo:
        store.load()

    assert "not found" in str(excinfo.value)
    assert not (tmp_path / "absent.json").exists()


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")

    with pytest.raises(StoreReadError) as excinfo:
        JsonFileStore(path).load()

    assert "Invalid JSON" in str(excinfo.value)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"gpus": []},
        {"gpu_database": {"gpus": {}}},
        {"gpu_database": {"gpus": [{"name": "no id"}]}},
        {"gpu_database": {"gpus": [{"id": "7"}]}},
        {"gpu_database": {"gpus": [{"id": -1}]}},
        {"gpu_database": {"gpus": [{"id": True}]}},
    ],
)
def test_load_rejects_unexpected_layout(tmp_path, payload):
    path = tmp_path / "shape.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(StoreReadError) as excinfo:
        JsonFileStore(path).load()

    assert "Unexpected GPU database layout" in str(excinfo.value)


def test_save_into_missing_directory_raises(tmp_path):
    store = JsonFileStore(tmp_path / "nope" / "gpu_database.json")

    with pytest.raises(StoreWriteError):
        store.save(empty_document())


def test_save_unserializable_document_raises(db_path):
    store = JsonFileStore(db_path)
    before = db_path.read_text(encoding="utf-8")
    document = store.load()
    document["gpu_database"]["gpus"][0]["purchased"] = object()

    with pytest.raises(StoreWriteError):
        store.save(document)

    assert db_path.read_text(encoding="utf-8") == before


def test_bootstrap_creates_empty_document_once(tmp_path):
    store = JsonFileStore(tmp_path / "data" / "gpu_database.json")

    assert store.bootstrap() is True
    assert store.load() == {"gpu_database": {"gpus": []}}
    assert store.bootstrap() is False


def test_bootstrap_leaves_existing_file_alone(db_path):
    store = JsonFileStore(db_path)

    assert store.bootstrap() is False
    assert store.load() == SAMPLE


def test_memory_store_hands_out_copies():
    store = MemoryStore(SAMPLE)

    first = store.load()
    first["gpu_database"]["gpus"].clear()

    assert len(store.load()["gpu_database"]["gpus"]) == 1


def test_memory_store_without_document_fails_to_load():
    with pytest.raises(StoreReadError):
        MemoryStore().load()


def test_memory_store_rejects_unserializable_document():
    store = MemoryStore(empty_document())

    with pytest.raises(StoreWriteError):
        store.save({"gpu_database": {"gpus": [{"id": 1, "tags": {"a", "b"}}]}})

    assert store.load() == empty_document()
