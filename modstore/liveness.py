"""Wait until a module proxy answers a GET with 200 OK."""

from __future__ import annotations

import argparse
import http.client
import os
import time
import urllib.error
import urllib.request
from http import HTTPStatus
from typing import Optional, Sequence

_PROBE_TIMEOUT = 5.0


def probe(url: str, timeout: float = _PROBE_TIMEOUT) -> bool:
    """Return True when a GET of ``url`` answers 200 OK.

    Error statuses give False; failures to reach the server raise.
    """
    request = urllib.request.Request(url, method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return response.status == HTTPStatus.OK
    except urllib.error.HTTPError as err:
        err.close()
        return False


def _is_expected(err: BaseException) -> bool:
    if isinstance(err, urllib.error.URLError) and isinstance(err.reason, BaseException):
        err = err.reason
    return isinstance(err, ConnectionError)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Probe the proxy once a second until it is live or the deadline passes."""
    parser = argparse.ArgumentParser(
        prog="liveness-probe",
        description="Wait until a module proxy is live.",
    )
    parser.add_argument("url", nargs="?", default=None, help="defaults to $GOPROXY")
    parser.add_argument("--timeout", type=float, default=60.0, help="seconds to wait")
    parser.add_argument("--interval", type=float, default=1.0, help="seconds between probes")
    args = parser.parse_args(argv)

    url = args.url if args.url is not None else os.environ.get("GOPROXY", "")
    deadline = time.monotonic() + args.timeout
    while True:
        if time.monotonic() >= deadline:
            print("liveness probe timed out")
            return 1
        try:
            live = probe(url, _PROBE_TIMEOUT)
        except (OSError, ValueError, http.client.HTTPException) as err:
            live = False
            if not _is_expected(err):
                print(err)
        if live:
            print("proxy is live")
            return 0
        time.sleep(args.interval)