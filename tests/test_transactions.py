import threading

import pytest

from burrowdb.errors import (
    BadXIDFileError,
    FileExistsDatabaseError,
    FileNotExistsError,
    InvalidFileAccessError,
)
from burrowdb.transactions import (
    SUPER_XID,
    XID_SUFFIX,
    TransactionStatus,
    create_manager,
    open_manager,
)


@pytest.fixture
def base_path(tmp_path):
    return str(tmp_path / "test")


def test_create_and_open(tmp_path, base_path):
    tm1 = create_manager(base_path)
    try:
        assert (tmp_path / ("test" + XID_SUFFIX)).exists()

        with pytest.raises(FileExistsDatabaseError):
            create_manager(base_path)

        tm2 = open_manager(base_path)
        tm2.close()

        with pytest.raises(FileNotExistsError):
            open_manager(str(tmp_path / "nonexistent"))
    finally:
        tm1.close()


def test_created_file_has_empty_header(tmp_path, base_path):
    create_manager(base_path).close()
    assert (tmp_path / ("test" + XID_SUFFIX)).read_bytes() == bytes(8)
    with open_manager(base_path) as tm:
        assert tm.begin() == 1


def test_super_xid(base_path):
    with create_manager(base_path) as tm:
        assert tm.is_committed(SUPER_XID) is True
        assert tm.is_active(SUPER_XID) is False
        assert tm.is_aborted(SUPER_XID) is False


def test_super_xid_commit_and_abort_are_noops(tmp_path, base_path):
    with create_manager(base_path) as tm:
        tm.commit(SUPER_XID)
        tm.abort(SUPER_XID)
        assert tm.is_committed(SUPER_XID) is True
        assert tm.is_aborted(SUPER_XID) is False
    assert (tmp_path / ("test" + XID_SUFFIX)).read_bytes() == bytes(8)
    with open_manager(base_path) as tm:
        assert tm.begin() == 1


def test_corrupt_file(tmp_path):
    corrupt = tmp_path / "corrupt"
    (tmp_path / ("corrupt" + XID_SUFFIX)).write_bytes(bytes([0, 0, 0]))
    with pytest.raises(BadXIDFileError):
        open_manager(str(corrupt))


def test_size_mismatch_is_bad_file(tmp_path):
    corrupt = tmp_path / "corrupt"
    (tmp_path / ("corrupt" + XID_SUFFIX)).write_bytes(
        (2).to_bytes(8, "little") + bytes([0])
    )
    with pytest.raises(BadXIDFileError):
        open_manager(str(corrupt))


def test_access_after_close_fails(base_path):
    tm = create_manager(base_path)
    tm.close()
    with pytest.raises(InvalidFileAccessError):
        tm.is_active(1)


def test_concurrent_begin(base_path):
    n = 100
    xids = []
    xids_lock = threading.Lock()

    with create_manager(base_path) as tm:

        def worker():
            xid = tm.begin()
            with xids_lock:
                xids.append(xid)

        threads = [threading.Thread(target=worker) for _ in range(n)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(xids)) == n
        assert sorted(xids) == list(range(1, n + 1))
        assert [tm.is_active(xid) for xid in xids] == [True] * n
        assert tm.begin() == n + 1


def test_file_operations(base_path):
    create_manager(base_path).close()

    tm2 = open_manager(base_path)
    xid = tm2.begin()
    tm2.commit(xid)
    tm2.close()

    with open_manager(base_path) as tm3:
        assert tm3.is_committed(xid)


def test_abort_is_persisted(base_path):
    with create_manager(base_path) as tm:
        first = tm.begin()
        second = tm.begin()
        tm.abort(second)
    with open_manager(base_path) as tm:
        assert tm.is_active(first)
        assert tm.is_aborted(second)
        assert not tm.is_committed(second)
        assert tm.begin() == second + 1


def test_file_layout_after_begin_and_commit(tmp_path, base_path):
    with create_manager(base_path) as tm:
        xid = tm.begin()
        tm.commit(xid)
        assert xid == 1
        assert tm.is_committed(xid) is True
    data = (tmp_path / ("test" + XID_SUFFIX)).read_bytes()
    assert data == (1).to_bytes(8, "little") + bytes([TransactionStatus.COMMITTED])


def test_invalid_state_reading(base_path):
    with create_manager(base_path) as tm:
        with pytest.raises(InvalidFileAccessError):
            tm.is_active(9999999)


def test_status_values():
    assert TransactionStatus(0) is TransactionStatus.ACTIVE
    assert TransactionStatus(1) is TransactionStatus.COMMITTED
    assert TransactionStatus(2) is TransactionStatus.ABORTED
    with pytest.raises(ValueError):
        TransactionStatus(3)