#!/usr/bin/env python3
#
# dhcpleasemon
#
# * Polls the dhcpleased (and optionally dhcp6leased) lease file of each
#   configured interface.
# * When a lease's address/prefix or default route changes, runs
#   <scripts_dir>/<prefix><ifname> with the lease in its environment.
#
# Runs as a classic forking daemon with a PID file, or in the foreground
# (-f) under a supervisor such as systemd, which is told READY=1 once the
# monitor is up.

from __future__ import annotations
import atexit
import logging
import os
import signal
import sys
from typing import List, Optional

import sdnotify

from .config import MonitorConfig, build_parser, parse_config
from .errors import ConfigError, DhcpLeaseMonError, LeaseFileError
from .monitor import Monitor


def read_pid(pid_file: str) -> Optional[int]:
    try:
        with open(pid_file) as f:
            return int(f.read().strip())
    except (OSError, ValueError):
        return None


def is_running(pid: Optional[int]) -> bool:
    if pid is None or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def remove_pid_file(pid_file: str) -> None:
    try:
        if read_pid(pid_file) == os.getpid():
            os.unlink(pid_file)
    except OSError as e:
        logging.warning("cannot remove %s: %s", pid_file, e.strerror)


def check_paths(config: MonitorConfig) -> None:
    """Fail while still attached to the terminal if the daemon could not start."""
    if not os.path.isdir(config.root_dir):
        raise DhcpLeaseMonError(f"root directory {config.root_dir} does not exist")
    for path in (config.pid_file, config.log_file):
        if path is None:
            continue
        try:
            with open(path, "a"):
                pass
        except OSError as e:
            raise DhcpLeaseMonError(f"cannot open {path}: {e.strerror}") from e


def daemonize(config: MonitorConfig) -> None:
    """Detach from the terminal and write the PID file."""
    pid = read_pid(config.pid_file)
    if is_running(pid):
        raise DhcpLeaseMonError(f"already running (PID {pid}, {config.pid_file})")
    check_paths(config)

    # paths stay valid after chdir(root_dir)
    pid_file = os.path.abspath(config.pid_file)
    log_file = os.path.abspath(config.log_file) if config.log_file else os.devnull

    try:
        if os.fork() > 0:
            os._exit(0)
    except OSError as e:
        raise DhcpLeaseMonError(f"fork #1 failed: {e}") from e

    os.chdir(config.root_dir)
    os.setsid()
    os.umask(0o022)

    try:
        if os.fork() > 0:
            os._exit(0)
    except OSError as e:
        raise DhcpLeaseMonError(f"fork #2 failed: {e}") from e

    sys.stdout.flush()
    sys.stderr.flush()

    with open(os.devnull) as devnull:
        os.dup2(devnull.fileno(), sys.stdin.fileno())
    with open(log_file, "a") as log:
        os.dup2(log.fileno(), sys.stdout.fileno())
        os.dup2(log.fileno(), sys.stderr.fileno())

    with open(pid_file, "w") as f:
        f.write(f"{os.getpid()}\n")
    atexit.register(remove_pid_file, pid_file)


def _terminate(signum, frame):
    raise SystemExit(0)


def run(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    try:
        config = parse_config(argv, ap)
    except ConfigError as e:
        ap.error(str(e))

    logging.basicConfig(level=logging.DEBUG if config.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s: %(message)s")

    monitor = Monitor(config, notifier=sdnotify.SystemdNotifier())

    if not config.foreground:
        try:
            daemonize(config)
        except (DhcpLeaseMonError, OSError) as e:
            logging.error("Error: %s", e)
            return 1

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _terminate)

    logging.info("monitoring %s (%s) every %ds",
                 ", ".join(config.interfaces),
                 "IPv4+IPv6" if config.ipv6 else "IPv4", config.interval)
    monitor.notifier.notify("READY=1")
    try:
        monitor.run()
    except LeaseFileError as e:
        logging.error("%s", e)
        return 1
    return 0


def cli_entry() -> None:
    sys.exit(run())


if __name__ == "__main__":
    cli_entry()
