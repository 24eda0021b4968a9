"""A throwaway storage backend for tests and local runs."""

from __future__ import annotations

import tempfile

from modstore.backend import StorageError
from modstore.fs import FileSystemStorage
from modstore.fs import new_storage as _new_fs_storage


def new_storage() -> FileSystemStorage:
    """Return a storage rooted in a fresh temporary directory."""
    op = "mem.NewStorage"
    try:
        tmp_dir = tempfile.mkdtemp()
    except OSError as err:
        raise StorageError(
            f"could not create temp dir for 'In Memory' storage ({err})", op=op
        ) from err
    try:
        return _new_fs_storage(tmp_dir)
    except StorageError as err:
        raise StorageError(
            f"could not create storage from memory fs ({err})", op=op
        ) from err