"""Filesystem storage for Go module versions, with blob helpers, a compliance suite and a liveness probe."""

__version__ = "0.1.0"
__all__ = ["backend", "blob", "object_keys", "fs", "mem", "compliance", "liveness"]