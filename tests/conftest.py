import os
import stat

import pytest

from dhcpleasemon.config import MonitorConfig
from dhcpleasemon.routes import RouteResolver


class StaticRouteResolver(RouteResolver):
    """Fixed routing table: {(interface, family): gateway}."""

    def __init__(self, table=None):
        self.table = dict(table or {})
        self.calls = []

    def default_route(self, interface, family):
        self.calls.append((interface, family))
        return self.table.get((interface, family))


class LeaseDir:
    """Writes lease files with strictly increasing mtimes."""

    def __init__(self, path):
        self.path = path
        self.path.mkdir(exist_ok=True)
        self._clock = 1_600_000_000 * 10**9

    def write(self, ifname, content, touch=True):
        f = self.path / ifname
        f.write_text(content)
        if touch:
            self.touch(ifname)
        else:
            os.utime(f, ns=(self._clock, self._clock))
        return f

    def touch(self, ifname):
        self._clock += 10**9
        os.utime(self.path / ifname, ns=(self._clock, self._clock))


@pytest.fixture
def leases(tmp_path):
    return LeaseDir(tmp_path / "dhcpleased")


@pytest.fixture
def leases6(tmp_path):
    return LeaseDir(tmp_path / "dhcp6leased")


@pytest.fixture
def scripts_dir(tmp_path):
    d = tmp_path / "scripts"
    d.mkdir()
    return d


@pytest.fixture
def make_script(scripts_dir, tmp_path):
    """Create an executable trigger script that logs its DHCP environment.

    Each invocation appends its DHCP* variables followed by a "--" line to
    the returned log file.
    """
    log = tmp_path / "trigger.log"

    def _make(name, exit_status=0):
        script = scripts_dir / name
        script.write_text(
            "#!/bin/sh\n"
            f"env | grep '^DHCP' | sort >> '{log}'\n"
            f"echo -- >> '{log}'\n"
            f"exit {exit_status}\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR)
        return script

    _make.log = log
    return _make


def read_invocations(log):
    if not log.exists():
        return []
    calls, current = [], {}
    for line in log.read_text().splitlines():
        if line == "--":
            calls.append(current)
            current = {}
        else:
            key, _, value = line.partition('=')
            current[key] = value
    return calls


@pytest.fixture
def config(leases, leases6, scripts_dir):
    return MonitorConfig(
        interfaces=["em0"],
        lease_dir=str(leases.path),
        lease6_dir=str(leases6.path),
        scripts_dir=str(scripts_dir),
    )
