# monitor.py - the lease polling loop
#
# Every <interval> seconds, for each configured interface (IPv4 first, then
# IPv6 when enabled):
#
#   lease file mtime advanced?  --no-->  next
#         | yes
#   read lease + default route -> record
#   record differs from the last one acted upon?  --no-->  next
#         | yes
#   remember record, run trigger script
#
# The remembered record is replaced even when the script fails; it runs
# again only once the lease changes again.

import logging
import os
import time
from typing import Dict, Optional

from .config import MonitorConfig
from .lease import (Family, Lease4, Lease6, LeaseRecord,
                    read_lease4_address, read_lease6_prefix)
from .routes import RouteResolver, make_resolver
from .tracker import ChangeTracker
from .trigger import TriggerRunner


class ParamsCache:
    """Last lease record acted upon, per family and interface."""

    def __init__(self):
        self._records: Dict[Family, Dict[str, LeaseRecord]] = {f: {} for f in Family}

    def get(self, interface: str, family: Family) -> Optional[LeaseRecord]:
        return self._records[family].get(interface)

    def changed(self, record: LeaseRecord) -> bool:
        return self.get(record.interface, record.family) != record

    def store(self, record: LeaseRecord) -> None:
        self._records[record.family][record.interface] = record


class Monitor:
    def __init__(self, config: MonitorConfig,
                 resolver: Optional[RouteResolver] = None,
                 runner: Optional[TriggerRunner] = None,
                 tracker: Optional[ChangeTracker] = None,
                 cache: Optional[ParamsCache] = None,
                 notifier=None):
        self.config = config
        self.resolver = resolver or make_resolver(config.route_backend)
        self.runner = runner or TriggerRunner(config.scripts_dir,
                                              config.trigger_prefix,
                                              config.trigger_prefix6)
        self.tracker = tracker or ChangeTracker()
        self.cache = cache or ParamsCache()
        self.notifier = notifier

    @property
    def families(self):
        return (Family.INET, Family.INET6) if self.config.ipv6 else (Family.INET,)

    def lease_path(self, interface: str, family: Family) -> str:
        lease_dir = self.config.lease_dir if family is Family.INET else self.config.lease6_dir
        return os.path.join(lease_dir, interface)

    def current_record(self, interface: str, family: Family) -> LeaseRecord:
        """Build the lease record for *interface* from disk and routing table."""
        path = self.lease_path(interface, family)
        route = self.resolver.default_route(interface, family)
        if family is Family.INET:
            return Lease4(interface, read_lease4_address(path), route)
        prefix, prefix_length = read_lease6_prefix(path)
        return Lease6(interface, prefix, prefix_length, route)

    def check(self, interface: str, family: Family) -> bool:
        """Run one check of *interface*; True if the trigger was fired.

        Raises LeaseFileError when the lease file cannot be stat'ed.
        """
        logging.debug("Checking (%s): %s", family.label, interface)
        path = self.lease_path(interface, family)
        if not self.tracker.was_modified(path):
            logging.debug("File not modified for %s (%s)", interface, path)
            return False

        record = self.current_record(interface, family)
        if not self.cache.changed(record):
            logging.debug("Lease params unchanged: %s", record)
            return False

        logging.info("Triggered: %s", record)
        self.cache.store(record)
        outcome = self.runner.run(record)
        if self.notifier is not None:
            self.notifier.notify(f"STATUS={interface}/{family.value}: trigger {outcome.value}")
        return True

    def run_once(self) -> int:
        """One pass over all interfaces; returns the number of triggers fired."""
        fired = 0
        for interface in self.config.interfaces:
            for family in self.families:
                if self.check(interface, family):
                    fired += 1
        return fired

    def run(self) -> None:
        while True:
            self.run_once()
            time.sleep(self.config.interval)
