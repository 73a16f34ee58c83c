import os

import pytest

from dhcpleasemon.errors import DhcpLeaseMonError, LeaseFileError
from dhcpleasemon.tracker import ChangeTracker


def test_first_observation_is_a_change(leases):
    f = leases.write("em0", "ip: 192.0.2.10\n")
    tracker = ChangeTracker()
    assert str(f) not in tracker
    assert tracker.was_modified(str(f))
    assert str(f) in tracker


def test_unchanged_mtime(leases):
    f = leases.write("em0", "ip: 192.0.2.10\n")
    tracker = ChangeTracker()
    tracker.was_modified(str(f))
    seen = tracker.last_seen(str(f))
    assert not tracker.was_modified(str(f))
    assert tracker.last_seen(str(f)) == seen


def test_mtime_advances(leases):
    f = leases.write("em0", "ip: 192.0.2.10\n")
    tracker = ChangeTracker()
    tracker.was_modified(str(f))
    leases.touch("em0")
    assert tracker.was_modified(str(f))
    assert not tracker.was_modified(str(f))


def test_older_mtime_is_not_a_change(leases):
    f = leases.write("em0", "ip: 192.0.2.10\n")
    tracker = ChangeTracker()
    tracker.was_modified(str(f))
    seen = tracker.last_seen(str(f))
    os.utime(f, ns=(seen - 10**9, seen - 10**9))
    assert not tracker.was_modified(str(f))
    assert tracker.last_seen(str(f)) == seen


def test_paths_are_tracked_separately(leases):
    a = leases.write("em0", "")
    b = leases.write("em1", "")
    tracker = ChangeTracker()
    assert tracker.was_modified(str(a))
    assert tracker.was_modified(str(b))
    assert not tracker.was_modified(str(a))


def test_missing_file_is_fatal(tmp_path):
    tracker = ChangeTracker()
    path = str(tmp_path / "em0")
    with pytest.raises(LeaseFileError) as exc:
        tracker.was_modified(path)
    assert isinstance(exc.value, DhcpLeaseMonError)
    assert exc.value.path == path
    assert path not in tracker
