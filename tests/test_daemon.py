import os

import pytest

from dhcpleasemon import daemon


@pytest.fixture(autouse=True)
def no_signal_handlers(monkeypatch):
    monkeypatch.setattr(daemon.signal, "signal", lambda *args: None)
    monkeypatch.delenv("NOTIFY_SOCKET", raising=False)


def test_read_pid(tmp_path):
    f = tmp_path / "x.pid"
    assert daemon.read_pid(str(f)) is None
    f.write_text("1234\n")
    assert daemon.read_pid(str(f)) == 1234
    f.write_text("garbage")
    assert daemon.read_pid(str(f)) is None


def test_is_running():
    assert daemon.is_running(os.getpid())
    assert not daemon.is_running(None)


def test_remove_pid_file_only_if_ours(tmp_path):
    f = tmp_path / "x.pid"
    f.write_text("1\n")
    daemon.remove_pid_file(str(f))
    assert f.exists()
    f.write_text(f"{os.getpid()}\n")
    daemon.remove_pid_file(str(f))
    assert not f.exists()


def test_refuses_second_instance(tmp_path, monkeypatch):
    pid_file = tmp_path / "x.pid"
    pid_file.write_text(f"{os.getpid()}\n")
    monkeypatch.setattr(daemon.os, "fork", lambda: pytest.fail("forked"))
    assert daemon.run(["-i", "em0", "-p", str(pid_file), "-d", str(tmp_path)]) == 1


def test_missing_lease_file_exits(tmp_path, caplog):
    rc = daemon.run(["-f", "-i", "em0", "-d", str(tmp_path), "-s", str(tmp_path)])
    assert rc == 1
    assert "cannot stat lease file" in caplog.text


def test_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        daemon.run([])
    assert exc.value.code == 2
    assert "No interfaces to monitor" in capsys.readouterr().err


def test_pid_zero_is_not_running():
    assert not daemon.is_running(0)
    assert not daemon.is_running(-1)


@pytest.mark.parametrize("extra, message", [
    (["-r", "/nonexistent/root"], "root directory /nonexistent/root does not exist"),
    (["-p", "/nonexistent/dir/x.pid"], "cannot open /nonexistent/dir/x.pid"),
    (["-l", "/nonexistent/dir/x.log"], "cannot open /nonexistent/dir/x.log"),
])
def test_bad_paths_fail_before_fork(tmp_path, monkeypatch, caplog, extra, message):
    monkeypatch.setattr(daemon.os, "fork", lambda: pytest.fail("forked"))
    args = ["-i", "em0", "-d", str(tmp_path), "-p", str(tmp_path / "x.pid")] + extra
    assert daemon.run(args) == 1
    assert message in caplog.text


def test_stale_pid_zero_does_not_block(tmp_path, monkeypatch, caplog):
    pid_file = tmp_path / "x.pid"
    pid_file.write_text("0\n")
    monkeypatch.setattr(daemon.os, "fork", lambda: pytest.fail("forked"))
    args = ["-i", "em0", "-p", str(pid_file), "-r", str(tmp_path / "missing")]
    assert daemon.run(args) == 1
    assert "already running" not in caplog.text
    assert "root directory" in caplog.text


class RecordingNotifier:
    messages = []

    def notify(self, msg):
        self.messages.append(msg)


def test_ready_notification(tmp_path, monkeypatch):
    RecordingNotifier.messages = []
    monkeypatch.setattr(daemon.sdnotify, "SystemdNotifier", RecordingNotifier)
    rc = daemon.run(["-f", "-i", "em0", "-d", str(tmp_path), "-s", str(tmp_path)])
    assert rc == 1
    assert RecordingNotifier.messages == ["READY=1"]
