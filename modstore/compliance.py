"""Behavioural checks and timing runs that any storage backend must pass."""

from __future__ import annotations

import io
import random
import time
from contextlib import suppress
from typing import Any, Callable

from modstore.backend import Backend, Kind, StorageError, Version, kind_of, with_checker

Clear = Callable[[], Any]


def _mock_module() -> Version:
    return Version(info=b"123", mod=b"456", zip=io.BytesIO(b"789"))


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def _clear(clear: Clear, message: str) -> None:
    try:
        clear()
    except Exception as err:
        raise AssertionError(f"{message}: {err}") from err


def _expect_not_found(call: Callable[[], Any], what: str) -> None:
    try:
        call()
    except Exception as err:
        kind = kind_of(err)
        _require(
            kind is Kind.NOT_FOUND,
            f"{what}: expected a not-found error, got {kind.value}: {err}",
        )
        return
    raise AssertionError(f"{what}: expected a not-found error, got none")


def _save(backend: Backend, module: str, version: str, message: str) -> None:
    mock = _mock_module()
    try:
        backend.save(module, version, mock.mod, mock.zip, mock.info)
    except Exception as err:
        raise AssertionError(f"{message}: {err}") from err


def _quiet_delete(backend: Backend, module: str, version: str) -> None:
    with suppress(Exception):
        backend.delete(module, version)


def _check_not_found(backend: Backend) -> None:
    """Missing modules yield not-found errors and an empty version list."""
    module, version = "github.com/gomods/athens", "yyy"
    _expect_not_found(lambda: backend.delete(module, version), "Delete")
    _expect_not_found(lambda: backend.go_mod(module, version), "GoMod")
    _expect_not_found(lambda: backend.info(module, version), "Info")
    versions = backend.list(module)
    _require(len(versions) == 0, f"List: expected no versions, got {versions!r}")
    _expect_not_found(lambda: backend.zip(module, version), "Zip")


def _check_list(backend: Backend) -> None:
    """List returns exactly the versions that were saved."""
    module = "github.com/gomods/athens"
    versions = ["v1.1.0", "v1.2.0", "v1.3.0"]
    for version in versions:
        _save(backend, module, version, "Save for storage failed")
    try:
        listed = backend.list(module)
        _require(
            list(listed) == versions,
            f"List: expected {versions!r}, got {listed!r}",
        )
    finally:
        for version in versions:
            _quiet_delete(backend, module, version)


def _check_list_suffix(backend: Backend) -> None:
    """Modules sharing a name prefix do not mix their versions."""
    mod_vers: dict[str, list[str]] = {
        "github.com/one/two": ["v1.1.0", "v1.2.0", "v1.3.0"],
        "github.com/one/two/v2": ["v2.1.0"],
        "github.com/one/two-other": ["v0.9.0"],
        "github.com/one": [],
    }
    for module, versions in mod_vers.items():
        for version in versions:
            _save(backend, module, version, "Save for storage failed")
    try:
        for module, versions in mod_vers.items():
            listed = backend.list(module)
            if not versions:
                _require(
                    not listed, f"List {module}: expected no versions, got {listed!r}"
                )
            else:
                _require(
                    list(listed) == versions,
                    f"List {module}: expected {versions!r}, got {listed!r}",
                )
    finally:
        for module, versions in mod_vers.items():
            for version in versions:
                _quiet_delete(backend, module, version)


def _check_delete(backend: Backend) -> None:
    """A deleted version no longer exists."""
    module = "github.com/gomods/athens"
    version = f"delete{random.getrandbits(63)}"
    _save(backend, module, version, "Save for storage failed")
    try:
        backend.delete(module, version)
    except Exception as err:
        raise AssertionError(f"Delete failed: {err}") from err
    exists = with_checker(backend).exists(module, version)
    _require(exists is False, "Exists: a deleted version still exists")


def _check_get(backend: Backend) -> None:
    """A saved version reads back unchanged."""
    module, version = "github.com/gomods/athens", "v1.2.3"
    mock = _mock_module()
    zip_bytes = mock.zip.read()
    with suppress(Exception):
        backend.save(module, version, mock.mod, io.BytesIO(zip_bytes), mock.info)
    try:
        info = backend.info(module, version)
        _require(info == mock.info, f"Info: expected {mock.info!r}, got {info!r}")

        mod = backend.go_mod(module, version)
        _require(
            bytes(mod).decode() == mock.mod.decode(),
            f"GoMod: expected {mock.mod!r}, got {mod!r}",
        )

        with backend.zip(module, version) as reader:
            given = reader.read()
            size = reader.size
        _require(given == zip_bytes, f"Zip: expected {zip_bytes!r}, got {given!r}")
        _require(
            size == len(zip_bytes),
            f"Zip: expected size {len(zip_bytes)}, got {size}",
        )
    finally:
        _quiet_delete(backend, module, version)


def _check_exists(backend: Backend) -> None:
    """A saved version exists."""
    module, version = "github.com/gomods/athens", "v1.2.3"
    mock = _mock_module()
    zip_bytes = mock.zip.read()
    with suppress(Exception):
        backend.save(module, version, mock.mod, io.BytesIO(zip_bytes), mock.info)
    try:
        exists = with_checker(backend).exists(module, version)
        _require(exists is True, "Exists: a saved version does not exist")
    finally:
        _quiet_delete(backend, module, version)


def _check_should_not_exist(backend: Backend) -> None:
    """A version that is only a prefix of a stored one does not exist."""
    module, version = "github.com/gomods/shouldNotExist", "v1.2.3-pre.1"
    mock = _mock_module()
    zip_bytes = mock.zip.read()
    try:
        backend.save(module, version, mock.mod, io.BytesIO(zip_bytes), mock.info)
    except Exception as err:
        raise AssertionError(f"should successfully save a mock module: {err}") from err
    try:
        exists = with_checker(backend).exists(module, "v1.2.3-pre")
        _require(
            not exists,
            "a non existing version that has the same prefix of an existing "
            "version should not exist",
        )
    finally:
        _quiet_delete(backend, module, version)


_CHECKS = (
    _check_not_found,
    _check_list,
    _check_list_suffix,
    _check_delete,
    _check_get,
    _check_exists,
    _check_should_not_exist,
)


def run_tests(backend: Backend, clear: Clear) -> None:
    """Run every compliance check against ``backend``.

    ``clear`` empties the backend; it is called before and after the run.
    The first failing check raises AssertionError.
    """
    _clear(clear, "pre-clearing backend failed")
    try:
        for check in _CHECKS:
            check(backend)
    except BaseException:
        with suppress(Exception):
            clear()
        raise
    _clear(clear, "post-clearing backend failed")


def _timed(iterations: int, step: Callable[[int], None]) -> float:
    start = time.perf_counter()
    for i in range(iterations):
        step(i)
    return time.perf_counter() - start


def _bench_list(backend: Backend, iterations: int) -> float:
    module, version = "benchListModule", "1.0.1"
    _save(backend, module, version, "save for storage failed")

    def step(_: int) -> None:
        try:
            backend.list(module)
        except Exception as err:
            raise AssertionError(f"Error in listing module: {err}") from err

    return _timed(iterations, step)


def _bench_save(backend: Backend, iterations: int) -> float:
    module, version = "benchSaveModule", "1.0.1"
    mock = _mock_module()
    zip_bytes = mock.zip.read()

    def step(i: int) -> None:
        backend.save(
            f"save-{module}-{i}", version, mock.mod, io.BytesIO(zip_bytes), mock.info
        )

    return _timed(iterations, step)


def _bench_delete(backend: Backend, iterations: int) -> float:
    module, version = "benchDeleteModule", "1.0.1"
    mock = _mock_module()
    zip_bytes = mock.zip.read()

    def step(i: int) -> None:
        name = f"del-{module}-{i}"
        try:
            backend.save(name, version, mock.mod, io.BytesIO(zip_bytes), mock.info)
        except Exception as err:
            raise AssertionError(f"saving {name} for storage failed: {err}") from err
        try:
            backend.delete(name, version)
        except Exception as err:
            raise AssertionError(f"delete failed: {name}: {err}") from err

    return _timed(iterations, step)


def _bench_exists(backend: Backend, iterations: int) -> float:
    module, version = "benchExistsModule", "1.0.1"
    mock = _mock_module()
    backend.save(module, version, mock.mod, mock.zip, mock.info)

    def step(_: int) -> None:
        exists = with_checker(backend).exists(module, version)
        _require(exists is True, f"Exists: {module}@{version} does not exist")

    return _timed(iterations, step)


_BENCHMARKS = (
    ("list", _bench_list),
    ("save", _bench_save),
    ("delete", _bench_delete),
    ("exists", _bench_exists),
)


def run_benchmarks(backend: Backend, clear: Clear, iterations: int) -> dict[str, float]:
    """Time list, save, delete and exists over ``iterations`` rounds each.

    Returns the elapsed seconds of each benchmark by name. The backend is
    cleared before and after every benchmark.
    """
    if iterations < 0:
        raise ValueError(f"iterations must not be negative, got {iterations}")
    results: dict[str, float] = {}
    for name, bench in _BENCHMARKS:
        _clear(clear, "clearing backend failed")
        try:
            results[name] = bench(backend, iterations)
        except BaseException:
            with suppress(Exception):
                clear()
            raise
        _clear(clear, "clearing backend failed")
    return results