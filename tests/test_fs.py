import io
import os

import pytest

from modstore.backend import Kind, StorageError, kind_of, with_checker
from modstore.fs import FileSystemStorage, new_storage


@pytest.fixture
def store(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    return new_storage(str(root))


def _save(store, module, version, zip_bytes=b"789"):
    store.save(module, version, b"456", io.BytesIO(zip_bytes), b"123")


def test_new_storage_missing_root(tmp_path):
    with pytest.raises(StorageError) as exc:
        new_storage(str(tmp_path / "absent"))
    assert "does not exist" in str(exc.value)


def test_new_storage_keeps_root(store, tmp_path):
    assert store.root_dir == str(tmp_path / "root")


def test_not_found(store):
    mod, ver = "github.com/gomods/athens", "yyy"
    for call in (store.delete, store.go_mod, store.info, store.zip, store.zip_size):
        with pytest.raises(StorageError) as exc:
            call(mod, ver)
        assert kind_of(exc.value) is Kind.NOT_FOUND
    assert store.list(mod) == []


def test_get_round_trip(store):
    _save(store, "github.com/gomods/athens", "v1.2.3")
    assert store.info("github.com/gomods/athens", "v1.2.3") == b"123"
    assert store.go_mod("github.com/gomods/athens", "v1.2.3") == b"456"
    with store.zip("github.com/gomods/athens", "v1.2.3") as reader:
        data = reader.read()
        assert data == b"789"
        assert reader.size == len(data)


def test_files_laid_out_on_disk(store):
    _save(store, "github.com/gomods/athens", "v1.2.3")
    directory = os.path.join(store.root_dir, "github.com", "gomods", "athens", "v1.2.3")
    assert sorted(os.listdir(directory)) == ["go.mod", "source.zip", "v1.2.3.info"]


def test_exists(store):
    mod = "github.com/gomods/athens"
    assert store.exists(mod, "v1.2.3") is False
    _save(store, mod, "v1.2.3")
    assert store.exists(mod, "v1.2.3") is True
    assert with_checker(store).exists(mod, "v1.2.3") is True


def test_prefix_version_does_not_exist(store):
    mod = "github.com/gomods/shouldNotExist"
    _save(store, mod, "v1.2.3-pre.1")
    assert store.exists(mod, "v1.2.3-pre") is False


def test_list(store):
    versions = ["v1.1.0", "v1.2.0", "v1.3.0"]
    for version in reversed(versions):
        _save(store, "github.com/gomods/athens", version)
    assert store.list("github.com/gomods/athens") == versions


def test_list_suffix(store):
    mod_vers = {
        "github.com/one/two": ["v1.1.0", "v1.2.0", "v1.3.0"],
        "github.com/one/two/v2": ["v2.1.0"],
        "github.com/one/two-other": ["v0.9.0"],
        "github.com/one": [],
    }
    for module, versions in mod_vers.items():
        for version in versions:
            _save(store, module, version)
    for module, versions in mod_vers.items():
        assert store.list(module) == versions


def test_list_skips_non_canonical(store):
    mod = "example.com/mod"
    for version in ["v1", "v1.2", "notaversion", "v1.0.0+build", "v01.0.0"]:
        _save(store, mod, version)
    assert store.list(mod) == ["v1.0.0+build"]


def test_delete(store):
    mod = "github.com/gomods/athens"
    _save(store, mod, "delete42")
    store.delete(mod, "delete42")
    assert store.exists(mod, "delete42") is False
    with pytest.raises(StorageError) as exc:
        store.delete(mod, "delete42")
    assert kind_of(exc.value) is Kind.NOT_FOUND


def test_catalog_pages(store):
    modname = "github.com/gomods/testCatalogModule"
    for i in range(6):
        _save(store, modname, f"v1.2.{i:04d}")

    first, token = store.catalog("", 5)
    assert len(first) == 5
    rest, token2 = store.catalog(token, 50)
    assert len(rest) == 1
    assert token2 == ""

    entries = sorted(first + rest)
    assert entries[0].module == modname
    assert entries[0].version == "v1.2.0000"
    assert entries[4].version == "v1.2.0004"
    versions = [entry.version for entry in entries]
    assert len(set(versions)) == len(versions)


def test_catalog_token_names_last_entry(store):
    _save(store, "example.com/a", "v1.0.0")
    _save(store, "example.com/b", "v2.0.0")
    entries, token = store.catalog("", 1)
    assert token == f"{entries[0].module}|{entries[0].version}"


def test_catalog_bad_token(store):
    with pytest.raises(StorageError) as exc:
        store.catalog("no-separator", 10)
    assert kind_of(exc.value) is Kind.BAD_REQUEST


def test_catalog_empty(store):
    assert store.catalog("", 10) == ([], "")


def test_zip_size_of_version_dir(store):
    _save(store, "example.com/mod", "v1.0.0")
    directory = os.path.join(store.root_dir, "example.com", "mod", "v1.0.0")
    assert store.zip_size("example.com/mod", "v1.0.0") == os.stat(directory).st_size


def test_clear(store):
    _save(store, "example.com/mod", "v1.0.0")
    store.clear()
    assert os.path.isdir(store.root_dir)
    assert os.listdir(store.root_dir) == []
    assert store.list("example.com/mod") == []


def test_direct_construction(tmp_path):
    storage = FileSystemStorage(str(tmp_path))
    _save(storage, "example.com/mod", "v1.0.0")
    assert storage.go_mod("example.com/mod", "v1.0.0") == b"456"