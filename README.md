# burrowdb

The storage layer of a small database engine. It is a library with no
command-line entry point.

- `burrowdb.transactions`: `TransactionManager` stores the status of each
  transaction (`TransactionStatus.ACTIVE`, `COMMITTED` or `ABORTED`) in an
  `.xid` file. Transaction id `0` is the super transaction. It always counts
  as committed, and `commit`/`abort` leave it unchanged.
- `burrowdb.cache`: `AbstractCache` is a thread-safe, reference-counted base
  class keyed by integers. Subclasses implement `get_for_cache(key)` and
  `release_for_cache(obj)`. A limit of zero or less means the cache has no
  limit.
- `burrowdb.page_cache`: `PageCache` keeps 8 KiB pages in a `.db` file and
  serves them through `AbstractCache`. When the last reference to a page is
  released, the page is written back if it is dirty.
- `burrowdb.page`: the `Page` class, the validity-check helpers for the first
  page (`init_raw_first_page`, `set_vc_open`, `set_vc_close`, `check_vc`), and
  the free-space-offset helpers for data pages (`init_raw_data_page`,
  `get_fso`, `insert`, `get_free_space`, `recover_insert`, `recover_update`).
- `burrowdb.logger`: `create_logger` and `open_logger` create and open a
  `.log` file whose first four bytes hold a big-endian checksum.

Every error is a subclass of `burrowdb.errors.DatabaseError`.

## Installation

```
pip install burrowdb
```

## Transactions

```python
from burrowdb.transactions import create_manager, open_manager

with create_manager("/tmp/mydb") as tm:      # creates /tmp/mydb.xid
    xid = tm.begin()
    assert tm.is_active(xid)
    tm.commit(xid)

with open_manager("/tmp/mydb") as tm:
    assert tm.is_committed(xid)
```

The file begins with an 8-byte little-endian count of allocated ids. One
status byte per transaction follows it. `create_manager` raises
`FileExistsDatabaseError` when the file already exists. `open_manager` raises
`FileNotExistsError` when the file is missing, and `BadXIDFileError` when the
header does not match the file's length. If a status byte cannot be read,
for example because the id was never allocated or the manager is closed,
the call raises `InvalidFileAccessError`.

## Pages

```python
from burrowdb import page
from burrowdb.page_cache import create_page_cache

with create_page_cache("/tmp/mydb", 1 << 20) as pc:   # 1 MiB of page memory
    pgno = pc.new_page(page.init_raw_data_page())
    pg = pc.get_page(pgno)
    with pg:                                           # holds the page lock
        offset = page.insert(pg, b"hello")
        print(offset, page.get_free_space(pg))
    pg.release()
```

- Page numbers start at 1.
- `PageCache.page_count` is the number of pages in the file.
- `truncate_by_pgno(n)` cuts the file so that page `n` is the last page.
- The cache needs room for at least ten pages (`memory // 8192 >= 10`).
  Otherwise it raises `MemoryTooSmallError`.
- When every slot is in use, `get_page` raises `CacheFullError`.
- `open_page_cache` opens an existing `.db` file. It raises
  `FileNotExistsError` when the file is missing.

## Log file

```python
from burrowdb.logger import create_logger, open_logger

create_logger("/tmp/mydb").close()     # writes a zero checksum header
with open_logger("/tmp/mydb") as log:
    print(log.x_checksum, log.file_size)
```

`open_logger` raises `BadLogFileError` when the file is shorter than its
four-byte header.

## What it does not do

The package stops at the storage layer:

- The logger only creates, opens and checks the header of the log file. It
  does not append, read or truncate log records.
- There is no crash recovery that replays the log.
- There is no record or version management, no query language, and no
  server.

## Running the tests

```
pip install -e ".[test]"
pytest
```