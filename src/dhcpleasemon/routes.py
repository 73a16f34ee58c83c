# routes.py - default gateway lookup per interface and address family
#
# Two backends:
#   netstat  - parses "netstat -rn -f inet|inet6" (the BSD routing table
#              layout: Destination Gateway Flags Refs Use Mtu Prio Iface)
#   netlink  - asks the kernel directly through pyroute2 (Linux)
#
# Lookups never raise; a gateway that cannot be determined is None.

import logging
import socket
import subprocess
from typing import List, Optional

from pyroute2 import IPRoute
from pyroute2.netlink.exceptions import NetlinkError

from .errors import ConfigError
from .lease import Family

NETSTAT_COLUMNS = 8
COL_DEST, COL_GATEWAY, COL_IFACE = 0, 1, 7

AF_FOR = {Family.INET: socket.AF_INET, Family.INET6: socket.AF_INET6}


class RouteResolver:
    """Interface of a default route lookup."""

    def default_route(self, interface: str, family: Family) -> Optional[str]:
        raise NotImplementedError


def parse_netstat(output: str, interface: str) -> Optional[str]:
    """Return the gateway of the "default" row for *interface*.

    Rows that do not have exactly eight columns (headers, section titles,
    rows with extra flags) are skipped.
    """
    for line in output.splitlines():
        cols = line.split()
        if len(cols) != NETSTAT_COLUMNS:
            continue
        if cols[COL_DEST] == "default" and cols[COL_IFACE] == interface:
            return cols[COL_GATEWAY]
    return None


class NetstatRouteResolver(RouteResolver):
    def __init__(self, netstat: str = "netstat"):
        self.netstat = netstat

    def command(self, family: Family) -> List[str]:
        return [self.netstat, "-rn", "-f", family.value]

    def default_route(self, interface: str, family: Family) -> Optional[str]:
        try:
            proc = subprocess.run(self.command(family), check=False,
                                  capture_output=True, text=True,
                                  errors="replace")
        except OSError as e:
            logging.warning("Failed to obtain route (iface: %s): %s", interface, e)
            return None

        if proc.returncode != 0:
            logging.warning("Failed to obtain route (iface: %s): %s exited with status %d",
                            interface, self.netstat, proc.returncode)
            return None

        route = parse_netstat(proc.stdout, interface)
        if route is None:
            logging.debug("no %s default route via %s", family.value, interface)
        return route


def _metric(r):
    return dict(r['attrs']).get('RTA_PRIORITY', 0)


class NetlinkRouteResolver(RouteResolver):
    """Default route lookup through rtnetlink, picking the lowest metric."""

    def default_route(self, interface: str, family: Family) -> Optional[str]:
        try:
            with IPRoute() as ipr:
                links = ipr.link_lookup(ifname=interface)
                if not links:
                    logging.warning("Failed to obtain route (iface: %s): no such interface",
                                    interface)
                    return None
                oif = links[0]
                defaults = []
                for r in ipr.get_routes(family=AF_FOR[family]):
                    if r['dst_len'] != 0:
                        continue
                    attrs = dict(r['attrs'])
                    if (r.get('oif') or attrs.get('RTA_OIF')) != oif:
                        continue
                    defaults.append(r)
        except (NetlinkError, OSError) as e:
            logging.warning("Failed to obtain route (iface: %s): %s", interface, e)
            return None

        if not defaults:
            logging.debug("no %s default route via %s", family.value, interface)
            return None
        best = min(defaults, key=_metric)
        return dict(best['attrs']).get('RTA_GATEWAY')


BACKENDS = {
    "netstat": NetstatRouteResolver,
    "netlink": NetlinkRouteResolver,
}


def make_resolver(backend: str) -> RouteResolver:
    try:
        return BACKENDS[backend]()
    except KeyError:
        raise ConfigError(f"unknown route backend: {backend}") from None
