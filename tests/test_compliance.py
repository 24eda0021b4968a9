import io

import pytest

from modstore import mem
from modstore.backend import Backend, Kind, SizedReader, StorageError
from modstore.compliance import run_benchmarks, run_tests
from modstore.fs import new_storage


class _DictBackend(Backend):
    def __init__(self):
        self.store = {}

    def _get(self, module, version):
        try:
            return self.store[(module, version)]
        except KeyError:
            raise StorageError(kind=Kind.NOT_FOUND, module=module, version=version)

    def list(self, module):
        return [v for (m, v) in self.store if m == module]

    def info(self, module, version):
        return self._get(module, version)[2]

    def go_mod(self, module, version):
        return self._get(module, version)[0]

    def zip(self, module, version):
        data = self._get(module, version)[1]
        return SizedReader(io.BytesIO(data), len(data))

    def save(self, module, version, mod, zip, info):
        self.store[(module, version)] = (mod, zip.read(), info)

    def delete(self, module, version):
        self._get(module, version)
        del self.store[(module, version)]

    def clear(self):
        self.store.clear()


class _SilentDeleteBackend(_DictBackend):
    def delete(self, module, version):
        self.store.pop((module, version), None)


class _WrongSizeBackend(_DictBackend):
    def zip(self, module, version):
        data = self._get(module, version)[1]
        return SizedReader(io.BytesIO(data), len(data) + 1)


class _LeakyDeleteBackend(_DictBackend):
    def delete(self, module, version):
        self._get(module, version)


class _ReversedListBackend(_DictBackend):
    def list(self, module):
        return list(reversed(super().list(module)))


@pytest.fixture
def fs_backend(tmp_path):
    root = tmp_path / "athens-fs-test"
    root.mkdir()
    return new_storage(str(root))


def test_fs_backend_passes_and_is_left_empty(fs_backend):
    run_tests(fs_backend, fs_backend.clear)
    assert fs_backend.list("github.com/gomods/athens") == []
    assert fs_backend.list("github.com/one/two") == []


def test_mem_backend_passes():
    backend = mem.new_storage()
    run_tests(backend, backend.clear)
    assert backend.exists("github.com/gomods/athens", "v1.2.3") is False


def test_dict_backend_passes_through_info_checker():
    backend = _DictBackend()
    run_tests(backend, backend.clear)
    assert backend.store == {}


def test_missing_not_found_error_fails():
    backend = _SilentDeleteBackend()
    with pytest.raises(AssertionError, match="Delete"):
        run_tests(backend, backend.clear)
    assert backend.store == {}


def test_wrong_zip_size_fails():
    backend = _WrongSizeBackend()
    with pytest.raises(AssertionError, match="size"):
        run_tests(backend, backend.clear)
    assert backend.store == {}


def test_delete_that_keeps_data_fails():
    backend = _LeakyDeleteBackend()
    with pytest.raises(AssertionError, match="deleted version still exists"):
        run_tests(backend, backend.clear)
    assert backend.store == {}


def test_list_order_is_checked():
    backend = _ReversedListBackend()
    with pytest.raises(AssertionError, match="List"):
        run_tests(backend, backend.clear)
    assert backend.list("github.com/gomods/athens") == []


def test_failing_clear_is_reported():
    backend = _DictBackend()

    def broken_clear():
        raise OSError("disk gone")

    with pytest.raises(AssertionError, match="pre-clearing backend failed"):
        run_tests(backend, broken_clear)
    assert backend.store == {}


def test_benchmarks_on_fs(fs_backend):
    results = run_benchmarks(fs_backend, fs_backend.clear, 3)
    assert set(results) == {"list", "save", "delete", "exists"}
    assert all(seconds >= 0 for seconds in results.values())
    assert fs_backend.list("benchListModule") == []


def test_benchmarks_on_mem():
    backend = mem.new_storage()
    results = run_benchmarks(backend, backend.clear, 2)
    assert sorted(results) == ["delete", "exists", "list", "save"]


def test_benchmarks_reject_negative_iterations(fs_backend):
    with pytest.raises(ValueError):
        run_benchmarks(fs_backend, fs_backend.clear, -1)


def test_benchmarks_detect_missing_exists():
    backend = _DictBackend()

    class _NeverThere(_DictBackend):
        def exists(self, module, version):
            return False

    broken = _NeverThere()
    with pytest.raises(AssertionError, match="does not exist"):
        run_benchmarks(broken, broken.clear, 1)
    assert backend.store == {}
    assert broken.store == {}