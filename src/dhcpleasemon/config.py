# config.py - command line and configuration file handling
#
# Settings come from an optional INI file and the command line, the latter
# winning.  File layout:
#
#   [dhcpleasemon]
#   Interfaces = em0 em1
#   Interfaces = vio0          ; repeated keys accumulate
#   Interval = 5
#   IPv6 = yes
#   RouteBackend = netstat

from __future__ import annotations
import argparse
import collections
import configparser
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ConfigError

SECTION = "dhcpleasemon"

DEFAULT_INTERVAL   = 1 # seconds
DEFAULT_PID_FILE   = "/var/run/dhcpleasemon.pid"
DEFAULT_ROOT_DIR   = "/"
DEFAULT_SCRIPTS    = "/etc/dhcpleasemon"
DEFAULT_PREFIX     = "lease_trigger_"
DEFAULT_LEASE_DIR  = "/var/db/dhcpleased"
DEFAULT_LEASE6_DIR = "/var/db/dhcp6leased"
ROUTE_BACKENDS     = ("netstat", "netlink")


@dataclass
class MonitorConfig:
    interfaces: List[str] = field(default_factory=list)
    interval: int = DEFAULT_INTERVAL
    lease_dir: str = DEFAULT_LEASE_DIR
    lease6_dir: str = DEFAULT_LEASE6_DIR
    scripts_dir: str = DEFAULT_SCRIPTS
    trigger_prefix: str = DEFAULT_PREFIX
    trigger_prefix6: str = DEFAULT_PREFIX
    ipv6: bool = False
    route_backend: str = "netstat"
    verbose: bool = False
    foreground: bool = False
    pid_file: str = DEFAULT_PID_FILE
    root_dir: str = DEFAULT_ROOT_DIR
    log_file: Optional[str] = None

    def validate(self) -> None:
        if not self.interfaces:
            raise ConfigError("No interfaces to monitor")
        if self.interval < 1:
            raise ConfigError(f"interval must be at least 1 second, got {self.interval}")
        if self.route_backend not in ROUTE_BACKENDS:
            raise ConfigError(f"unknown route backend: {self.route_backend}")


class ConfigParserMultiValues(collections.OrderedDict):
    def __setitem__(self, key, value):
        if key in self and isinstance(value, list):
            self[key].extend(value)
        else:
            super().__setitem__(key, value)

    @staticmethod
    def getlist(value):
        return value.split()


# config key -> (MonitorConfig attribute, getter)
FILE_KEYS = {
    "Interfaces":     ("interfaces", "getlist"),
    "Interval":       ("interval", "getint"),
    "LeaseDir":       ("lease_dir", "get"),
    "Lease6Dir":      ("lease6_dir", "get"),
    "ScriptsDir":     ("scripts_dir", "get"),
    "TriggerPrefix":  ("trigger_prefix", "get"),
    "TriggerPrefix6": ("trigger_prefix6", "get"),
    "IPv6":           ("ipv6", "getboolean"),
    "RouteBackend":   ("route_backend", "get"),
    "PidFile":        ("pid_file", "get"),
    "RootDir":        ("root_dir", "get"),
    "LogFile":        ("log_file", "get"),
}


def load_config_file(path: str) -> dict:
    """Read the [dhcpleasemon] section of *path* into MonitorConfig keywords."""
    cp = configparser.ConfigParser(
            strict=False, empty_lines_in_values=False,
            dict_type=ConfigParserMultiValues,
            converters={"list": ConfigParserMultiValues.getlist})
    try:
        with open(path, encoding="utf-8") as f:
            cp.read_file(f)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e.strerror}") from e
    except configparser.Error as e:
        raise ConfigError(f"{path}: {e}") from e

    cfg = {}
    if not cp.has_section(SECTION):
        return cfg
    for key, (attr, getter) in FILE_KEYS.items():
        if not cp.has_option(SECTION, key):
            continue
        try:
            cfg[attr] = getattr(cp, getter)(SECTION, key)
        except ValueError as e:
            raise ConfigError(f"{path}: bad value for {key}: {e}") from e
    unknown = set(cp.options(SECTION)) - {k.lower() for k in FILE_KEYS}
    if unknown:
        raise ConfigError(f"{path}: unknown option(s): {', '.join(sorted(unknown))}")
    return cfg


def build_parser() -> argparse.ArgumentParser:
    # Defaults are None so that only explicitly given options override the
    # configuration file.
    ap = argparse.ArgumentParser(
        prog="dhcpleasemon",
        description="Run trigger scripts when DHCP leases change")
    ap.add_argument("-c", "--config", help="configuration file")
    ap.add_argument("-f", "--foreground", action="store_true",
                    help="run in foreground")
    ap.add_argument("-p", "--pid-file",
                    help=f"PID file (default {DEFAULT_PID_FILE})")
    ap.add_argument("-r", "--root-dir",
                    help=f"working directory of the daemon (default {DEFAULT_ROOT_DIR})")
    ap.add_argument("-l", "--log-file",
                    help="send output of the daemon to this file")
    ap.add_argument("-s", "--scripts-dir",
                    help=f"directory with trigger scripts (default {DEFAULT_SCRIPTS})")
    ap.add_argument("--trigger-script-prefix", dest="trigger_prefix",
                    help=f"name prefix for trigger scripts, IPv4 (default {DEFAULT_PREFIX})")
    ap.add_argument("--trigger-script-prefix-ipv6", dest="trigger_prefix6",
                    help=f"name prefix for trigger scripts, IPv6 (default {DEFAULT_PREFIX})")
    ap.add_argument("-d", "--dhcp-lease-dir", dest="lease_dir",
                    help=f"directory monitored for lease changes (default {DEFAULT_LEASE_DIR})")
    ap.add_argument("-D", "--dhcp6-lease-dir", dest="lease6_dir",
                    help=f"directory monitored for IPv6 lease changes (default {DEFAULT_LEASE6_DIR})")
    ap.add_argument("-t", "--interval", type=int,
                    help=f"scan interval in seconds (default {DEFAULT_INTERVAL})")
    ap.add_argument("-i", "--interface", dest="interfaces", action="append",
                    metavar="IFACE", help="interface to monitor (repeatable)")
    ap.add_argument("-6", "--ipv6", action="store_true", default=None,
                    help="monitor IPv6 leases as well")
    ap.add_argument("--route-backend", choices=ROUTE_BACKENDS,
                    help="how to look up default routes (default netstat)")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def parse_config(argv: Optional[List[str]] = None,
                 parser: Optional[argparse.ArgumentParser] = None) -> MonitorConfig:
    """Build a validated MonitorConfig from *argv* and the optional file."""
    ap = parser or build_parser()
    args = ap.parse_args(argv)

    settings = load_config_file(args.config) if args.config else {}
    for attr in ("foreground", "verbose"):
        settings[attr] = getattr(args, attr)
    for attr, _ in FILE_KEYS.values():
        value = getattr(args, attr)
        if value is not None:
            settings[attr] = value

    config = MonitorConfig(**settings)
    config.validate()
    return config
