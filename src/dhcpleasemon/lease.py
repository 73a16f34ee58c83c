# lease.py - lease records and lease file parsing
#
# IPv4 lease files (dhcpleased) hold "key: value" lines:
#
#     ip: 192.0.2.10
#     netmask: 255.255.255.0
#
# IPv6 lease files (dhcp6leased) hold whitespace separated columns; the
# delegated prefix is on the "ia_pd" row:
#
#     ia_pd 0 2001:db8::/56 56
#
# Fields that could not be determined are None.  Readers never raise: a
# missing or unreadable file is just a lease we know nothing about.

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union


class Family(enum.Enum):
    INET = "inet"
    INET6 = "inet6"

    @property
    def label(self) -> str:
        return "IPv4" if self is Family.INET else "IPv6"


@dataclass(frozen=True)
class Lease4:
    interface: str
    address: Optional[str] = None
    route: Optional[str] = None

    family = Family.INET

    def environ(self) -> Dict[str, str]:
        return {
            "DHCP_IFACE": self.interface,
            "DHCP_IP_ADDR": self.address or '',
            "DHCP_IP_ROUTE": self.route or '',
        }


@dataclass(frozen=True)
class Lease6:
    interface: str
    prefix: Optional[str] = None
    prefix_length: Optional[str] = None
    route: Optional[str] = None

    family = Family.INET6

    def environ(self) -> Dict[str, str]:
        return {
            "DHCP6_IFACE": self.interface,
            "DHCP6_IP_PREFIX": self.prefix or '',
            "DHCP6_IP_PREFIX_LEN": self.prefix_length or '',
            "DHCP6_IP_ROUTE": self.route or '',
        }


LeaseRecord = Union[Lease4, Lease6]


def _read_lines(path: str):
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read().splitlines()
    except OSError as e:
        logging.debug("cannot read lease file %s: %s", path, e)
        return []


def read_lease4_address(path: str) -> Optional[str]:
    """Return the value of the first "ip:" line of an IPv4 lease file."""
    for line in _read_lines(path):
        key, sep, value = line.partition(':')
        if sep and key.strip() == "ip":
            return value.strip()
    return None


def read_lease6_prefix(path: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (prefix, prefix length) from the first "ia_pd" row."""
    for line in _read_lines(path):
        cols = line.split()
        if not cols or cols[0] != "ia_pd":
            continue
        if len(cols) < 4:
            logging.debug("short ia_pd row in %s: %r", path, line)
            continue
        return cols[2], cols[3]
    return None, None
