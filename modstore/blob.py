"""Parallel upload and deletion of a module version's three blob files."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from typing import BinaryIO, Callable, Sequence

from modstore.backend import StorageError

Uploader = Callable[[str, str, BinaryIO], None]
Deleter = Callable[[str], None]

_EXTENSIONS = ("info", "mod", "zip")


def package_versioned_name(module: str, version: str, ext: str) -> str:
    """Return the blob path of a module version's file with extension ``ext``."""
    return f"{module}/@v/{version}.{ext}"


def _format_errors(errors: Sequence[BaseException]) -> str:
    if len(errors) == 1:
        return f"1 error occurred:\n\t* {errors[0]}\n\n"
    points = "\n\t".join(f"* {err}" for err in errors)
    return f"{len(errors)} errors occurred:\n\t{points}\n\n"


def _run_all(
    tasks: Sequence[tuple[str, Callable[[], None]]],
    timeout: float,
    verb: str,
    module: str,
    version: str,
    op: str,
) -> None:
    executor = ThreadPoolExecutor(max_workers=len(tasks))
    try:
        futures = [(ext, executor.submit(task)) for ext, task in tasks]
        done, _ = wait([future for _, future in futures], timeout=timeout)
    finally:
        executor.shutdown(wait=False)

    errors: list[BaseException] = []
    for ext, future in futures:
        if future in done:
            exc = future.exception()
            if exc is not None:
                errors.append(exc)
        else:
            errors.append(
                TimeoutError(
                    f"{verb} {module}.{version}.{ext} failed: context deadline exceeded"
                )
            )
    if errors:
        raise StorageError(_format_errors(errors), op=op) from errors[0]


def upload(
    module: str,
    version: str,
    info: BinaryIO,
    mod: BinaryIO,
    zip: BinaryIO,
    uploader: Uploader,
    timeout: float,
) -> None:
    """Upload the info, mod and zip streams in parallel within ``timeout`` seconds.

    Every failure and every upload still running at the deadline is
    collected into one StorageError.
    """
    jobs = (
        ("info", "application/json", info),
        ("mod", "text/plain", mod),
        ("zip", "application/octet-stream", zip),
    )

    def job(ext: str, content_type: str, stream: BinaryIO) -> Callable[[], None]:
        path = package_versioned_name(module, version, ext)
        return lambda: uploader(path, content_type, stream)

    tasks = [(ext, job(ext, content_type, stream)) for ext, content_type, stream in jobs]
    _run_all(tasks, timeout, "uploading", module, version, "module.Upload")


def delete(module: str, version: str, deleter: Deleter, timeout: float) -> None:
    """Delete the info, mod and zip blobs in parallel within ``timeout`` seconds.

    Every failure and every deletion still running at the deadline is
    collected into one StorageError.
    """

    def job(ext: str) -> Callable[[], None]:
        path = package_versioned_name(module, version, ext)
        return lambda: deleter(path)

    tasks = [(ext, job(ext)) for ext in _EXTENSIONS]
    _run_all(tasks, timeout, "deleting", module, version, "module.Delete")