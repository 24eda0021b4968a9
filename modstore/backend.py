"""Core storage types: error kinds, sized readers, module records and the backend interface."""

from __future__ import annotations

import abc
import enum
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO, Optional


class Kind(enum.Enum):
    """Classification of a storage failure."""

    NOT_FOUND = "not found"
    BAD_REQUEST = "bad request"
    ALREADY_EXISTS = "already exists"
    UNEXPECTED = "unexpected"


class StorageError(Exception):
    """An error raised by a storage backend, optionally tagged with a kind."""

    def __init__(
        self,
        message: str = "",
        *,
        op: str = "",
        kind: Optional[Kind] = None,
        module: str = "",
        version: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        self.message = message or (str(cause) if cause is not None else "")
        self.op = op
        self.kind = kind
        self.module = module
        self.version = version
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        text = self.message or (self.kind.value if self.kind else "storage error")
        return f"{self.op}: {text}" if self.op else text


def kind_of(err: BaseException) -> Kind:
    """Return the first kind found on ``err`` or its chain of causes."""
    current: Optional[BaseException] = err
    while isinstance(current, StorageError):
        if current.kind is not None:
            return current.kind
        current = current.cause
    return Kind.UNEXPECTED


class SizedReader:
    """A readable, closable binary stream that knows its full length."""

    def __init__(self, stream: BinaryIO, size: int) -> None:
        self._stream = stream
        self.size = size

    def read(self, n: int = -1) -> bytes:
        return self._stream.read(n)

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return bool(getattr(self._stream, "closed", False))

    def __enter__(self) -> "SizedReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


@dataclass
class RevInfo:
    """The JSON body served for a version's ``.info`` request."""

    version: str
    time: datetime

    def to_json(self) -> str:
        stamp = self.time
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        text = stamp.isoformat()
        if text.endswith("+00:00"):
            text = text[: -len("+00:00")] + "Z"
        return json.dumps({"Version": self.version, "Time": text})

    @classmethod
    def from_json(cls, data: str | bytes) -> "RevInfo":
        raw = json.loads(data)
        stamp = raw["Time"]
        if stamp.endswith("Z"):
            stamp = stamp[:-1] + "+00:00"
        return cls(version=raw["Version"], time=datetime.fromisoformat(stamp))


@dataclass
class Version:
    """A module version: its go.mod, info and zip contents."""

    mod: bytes
    zip: BinaryIO
    info: bytes
    semver: str = ""


@dataclass
class Module:
    """A module version as stored in a document store."""

    module: str
    version: str
    mod: bytes = b""
    info: bytes = b""
    id: Optional[Any] = field(default=None)


@dataclass(frozen=True, order=True)
class CatalogEntry:
    """One module/version pair returned by a catalog listing."""

    module: str
    version: str


class Backend(abc.ABC):
    """A complete storage backend: lister, getter, saver and deleter."""

    @abc.abstractmethod
    def list(self, module: str) -> list[str]:
        """Return all stored versions of ``module``."""

    @abc.abstractmethod
    def info(self, module: str, version: str) -> bytes:
        """Return the ``.info`` contents; raise NOT_FOUND if missing."""

    @abc.abstractmethod
    def go_mod(self, module: str, version: str) -> bytes:
        """Return the go.mod contents; raise NOT_FOUND if missing."""

    @abc.abstractmethod
    def zip(self, module: str, version: str) -> SizedReader:
        """Return a reader over the source zip; raise NOT_FOUND if missing."""

    @abc.abstractmethod
    def save(self, module: str, version: str, mod: bytes, zip: BinaryIO, info: bytes) -> None:
        """Store a module version."""

    @abc.abstractmethod
    def delete(self, module: str, version: str) -> None:
        """Remove a module version; raise NOT_FOUND if it is absent."""


class _InfoChecker:
    """Answers existence by probing a backend's ``info``."""

    def __init__(self, backend: Backend) -> None:
        self._backend = backend

    def exists(self, module: str, version: str) -> bool:
        try:
            self._backend.info(module, version)
        except StorageError as err:
            if kind_of(err) is Kind.NOT_FOUND:
                return False
            raise
        return True


def with_checker(backend: Backend) -> Any:
    """Return an object with ``exists(module, version)`` for ``backend``."""
    if callable(getattr(backend, "exists", None)):
        return backend
    return _InfoChecker(backend)