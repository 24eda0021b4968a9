"""A storage backend that keeps module versions in a directory tree."""

from __future__ import annotations

import os
import re
import shutil
from typing import BinaryIO, Iterator

from modstore.backend import Backend, CatalogEntry, Kind, SizedReader, StorageError

_TOKEN_SEPARATOR = "|"

_NUM = r"(?:0|[1-9][0-9]*)"
_PRE_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_BUILD_IDENT = r"[0-9A-Za-z-]+"
_SEMVER = re.compile(
    rf"v{_NUM}"
    rf"(?P<minor>\.{_NUM}"
    rf"(?P<patch>\.{_NUM}"
    rf"(?:-{_PRE_IDENT}(?:\.{_PRE_IDENT})*)?"
    rf"(?P<build>\+{_BUILD_IDENT}(?:\.{_BUILD_IDENT})*)?"
    r")?)?"
)


def _canonical_semver(version: str) -> str:
    """Return the canonical form of a semantic version, or "" if it is invalid."""
    match = _SEMVER.fullmatch(version)
    if match is None:
        return ""
    if match.group("build"):
        return version[: -len(match.group("build"))]
    if not match.group("minor"):
        return version + ".0.0"
    if not match.group("patch"):
        return version + ".0"
    return version


def _walk(path: str) -> Iterator[str]:
    """Yield ``path`` and everything below it, depth first in lexical order."""
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        try:
            names = sorted(os.listdir(path))
        except OSError:
            return
        for name in names:
            yield from _walk(os.path.join(path, name))


def _token_from_mod_ver(module: str, version: str) -> str:
    return module + _TOKEN_SEPARATOR + version


def _mod_ver_from_token(token: str) -> tuple[str, str]:
    if not token:
        return "", ""
    values = token.split(_TOKEN_SEPARATOR)
    if len(values) < 2:
        raise StorageError("Invalid token", op="fs.Catalog")
    return values[0], values[1]


class FileSystemStorage(Backend):
    """Stores each version under ``root_dir/<module>/<version>/``."""

    def __init__(self, root_dir: str) -> None:
        self.root_dir = root_dir

    def _module_location(self, module: str) -> str:
        return os.path.join(self.root_dir, module)

    def _version_location(self, module: str, version: str) -> str:
        return os.path.join(self._module_location(module), version)

    def list(self, module: str) -> list[str]:
        """Return the semantic-version directories of ``module`` in name order."""
        location = self._module_location(module)
        try:
            with os.scandir(location) as entries:
                dirs = sorted(entry.name for entry in entries if entry.is_dir())
        except FileNotFoundError:
            return []
        except OSError as err:
            raise StorageError(
                op="fs.List", kind=Kind.UNEXPECTED, module=module, cause=err
            ) from err
        return [
            name
            for name in dirs
            if (canonical := _canonical_semver(name)) and name.startswith(canonical)
        ]

    def _read(self, op: str, module: str, version: str, filename: str) -> bytes:
        path = os.path.join(self._version_location(module, version), filename)
        try:
            with open(path, "rb") as handle:
                return handle.read()
        except OSError as err:
            raise StorageError(
                op=op, kind=Kind.NOT_FOUND, module=module, version=version
            ) from err

    def info(self, module: str, version: str) -> bytes:
        return self._read("fs.Info", module, version, version + ".info")

    def go_mod(self, module: str, version: str) -> bytes:
        return self._read("fs.GoMod", module, version, "go.mod")

    def zip(self, module: str, version: str) -> SizedReader:
        path = os.path.join(self._version_location(module, version), "source.zip")
        try:
            handle = open(path, "rb")
        except OSError as err:
            raise StorageError(
                op="fs.Zip", kind=Kind.NOT_FOUND, module=module, version=version
            ) from err
        try:
            size = os.fstat(handle.fileno()).st_size
        except OSError as err:
            handle.close()
            raise StorageError(op="fs.Zip", cause=err) from err
        return SizedReader(handle, size)

    def zip_size(self, module: str, version: str) -> int:
        """Return the size reported for the version's directory."""
        try:
            return os.stat(self._version_location(module, version)).st_size
        except OSError as err:
            raise StorageError(
                op="fs.ZipFileSize",
                kind=Kind.NOT_FOUND,
                module=module,
                version=version,
                cause=err,
            ) from err

    def exists(self, module: str, version: str) -> bool:
        """Return True when the version directory holds exactly three files."""
        try:
            entries = os.listdir(self._version_location(module, version))
        except FileNotFoundError:
            return False
        except OSError as err:
            raise StorageError(
                op="fs.Exists", module=module, version=version, cause=err
            ) from err
        return len(entries) == 3

    def delete(self, module: str, version: str) -> None:
        try:
            present = self.exists(module, version)
        except StorageError as err:
            raise StorageError(
                op="fs.Delete", module=module, version=version, cause=err
            ) from err
        if not present:
            raise StorageError(
                op="fs.Delete", kind=Kind.NOT_FOUND, module=module, version=version
            )
        shutil.rmtree(self._version_location(module, version))

    def save(
        self, module: str, version: str, mod: bytes, zip: BinaryIO, info: bytes
    ) -> None:
        directory = self._version_location(module, version)
        try:
            os.makedirs(directory, exist_ok=True)
            with open(os.path.join(directory, "go.mod"), "wb") as handle:
                handle.write(mod)
            with open(os.path.join(directory, "source.zip"), "wb") as handle:
                shutil.copyfileobj(zip, handle)
        except OSError as err:
            raise StorageError(
                op="fs.Save", module=module, version=version, cause=err
            ) from err
        try:
            with open(os.path.join(directory, version + ".info"), "wb") as handle:
                handle.write(info)
        except OSError as err:
            raise StorageError(op="fs.Save", cause=err) from err

    def catalog(self, token: str, page_size: int) -> tuple[list[CatalogEntry], str]:
        """Return up to ``page_size`` stored versions after ``token`` and the next token.

        The next token is empty when the walk reached the end of the tree.
        """
        try:
            from_module, from_version = _mod_ver_from_token(token)
        except StorageError as err:
            raise StorageError(
                op="fs.Catalog", kind=Kind.BAD_REQUEST, cause=err
            ) from err

        result: list[CatalogEntry] = []
        next_token = ""
        count = page_size
        try:
            for path in _walk(self.root_dir):
                if not os.path.basename(path).endswith(".info"):
                    continue
                mod_ver = os.path.relpath(os.path.dirname(path), self.root_dir)
                head, version = os.path.split(mod_ver)
                module = os.path.normpath(head).replace(os.sep, "/")
                if from_module and module < from_module:
                    continue
                if from_version and version <= from_version:
                    continue
                result.append(CatalogEntry(module=module, version=version))
                count -= 1
                if count == 0:
                    next_token = _token_from_mod_ver(module, version)
                    break
        except (OSError, ValueError) as err:
            raise StorageError(
                op="fs.Catalog", kind=Kind.UNEXPECTED, cause=err
            ) from err
        return result, next_token

    def clear(self) -> None:
        """Remove everything stored and recreate the empty root directory."""
        shutil.rmtree(self.root_dir, ignore_errors=False)
        os.mkdir(self.root_dir)


def new_storage(root_dir: str) -> FileSystemStorage:
    """Return a storage rooted at ``root_dir``, which must already exist."""
    if not os.path.exists(root_dir):
        raise StorageError(
            f"root directory `{root_dir}` does not exist", op="fs.NewStorage"
        )
    return FileSystemStorage(root_dir)