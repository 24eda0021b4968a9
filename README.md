# modstore

Storage for a Go module proxy. For every module version it keeps the
`go.mod` file, the `.info` metadata and the source zip, and can list, read,
check, delete and catalog them.

## The backend interface

`modstore.backend` defines what every storage offers:

- `Backend` — abstract base with `list(module)`, `info(module, version)`,
  `go_mod(module, version)`, `zip(module, version)`,
  `save(module, version, mod, zip, info)` and `delete(module, version)`.
- `StorageError` — raised by storages; carries `op`, `kind`, `module`,
  `version` and `cause`.
- `Kind` — `NOT_FOUND`, `BAD_REQUEST`, `ALREADY_EXISTS`, `UNEXPECTED`;
  `kind_of(err)` returns the first kind found along an error's causes
  (`UNEXPECTED` if there is none).
- `SizedReader` — a binary stream with a `size` attribute, usable as a
  context manager; returned by `zip`.
- `with_checker(backend)` — returns the backend itself if it has an
  `exists` method, otherwise a wrapper whose `exists` probes `info`.
- `RevInfo` (with `to_json` / `from_json`), `Version`, `Module` and
  `CatalogEntry` — plain data records.

## Filesystem storage

`modstore.fs.new_storage(root_dir)` returns a `FileSystemStorage` rooted at a
directory that must already exist; each version lives in
`root_dir/<module>/<version>/` as `go.mod`, `source.zip` and `<version>.info`.
Beyond the interface it has `exists`, `zip_size`, `clear` and
`catalog(token, page_size)`, which returns a page of `CatalogEntry` values and
the token for the next page (empty when the walk reached the end).
`list` returns only directory names that are valid semantic versions.

`modstore.mem.new_storage()` returns a `FileSystemStorage` in a fresh
temporary directory, for tests and throwaway runs.

```python
from io import BytesIO
from modstore import mem
from modstore.backend import Kind, StorageError, kind_of, with_checker

store = mem.new_storage()
store.save("github.com/example/lib", "v1.0.0", b"module github.com/example/lib\n",
           BytesIO(b"zip bytes"), b'{"Version":"v1.0.0"}')

print(store.list("github.com/example/lib"))        # ['v1.0.0']
print(store.go_mod("github.com/example/lib", "v1.0.0"))

with store.zip("github.com/example/lib", "v1.0.0") as reader:
    print(reader.size, reader.read())

print(with_checker(store).exists("github.com/example/lib", "v1.0.0"))  # True

try:
    store.info("github.com/example/lib", "v9.9.9")
except StorageError as err:
    assert kind_of(err) is Kind.NOT_FOUND
```

## Blob-store helpers

`modstore.blob` names a version's files with
`package_versioned_name(module, version, ext)` (`<module>/@v/<version>.<ext>`)
and runs `upload(module, version, info, mod, zip, uploader, timeout)` and
`delete(module, version, deleter, timeout)` on all three files in parallel
under a shared deadline in seconds. Every failure, and every file still
pending at the deadline, is collected into one `StorageError`.

`modstore.object_keys.extract_key(object_key)` unescapes a key laid out as
`module/version/file` and returns `(key, module, version)`.

## Checking a backend

`modstore.compliance.run_tests(backend, clear)` runs the shared behaviour
checks against any `Backend`, calling `clear()` before and after, and raises
`AssertionError` on the first failure.
`run_benchmarks(backend, clear, iterations)` times list, save, delete and
exists and returns the elapsed seconds of each by name.

## Liveness probe

```
GOPROXY=http://localhost:3000 modstore-liveness
```

polls the proxy at `$GOPROXY` (or the URL given as an argument) until a GET
answers `200 OK`, then prints `proxy is live` and exits 0. It gives up after
`--timeout` seconds (default 60) with exit status 1; `--interval` sets the
pause between probes (default 1 second). `modstore.liveness.probe(url, timeout)`
performs a single check.

## What is not included

The only storage provided is the local filesystem. There is no database-backed
or cloud object-store backend; the blob helpers and `extract_key` are building
blocks for writing one, not a backend in themselves. The package also contains
no proxy server: it stores and serves module files to your code, not over HTTP.

## Tests

```
pip install -e .[test]
pytest
```