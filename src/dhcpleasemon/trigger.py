# trigger.py - run the per-interface trigger script for a lease
#
# Scripts live in a single directory and are named <prefix><ifname>, with a
# separate prefix for IPv4 and IPv6 leases.  A missing script is not an
# error; the interface simply has nothing to do on lease changes.
#
# The script receives no positional arguments; the environment contains
#
#    IPv4: DHCP_IFACE  DHCP_IP_ADDR  DHCP_IP_ROUTE
#    IPv6: DHCP6_IFACE DHCP6_IP_PREFIX DHCP6_IP_PREFIX_LEN DHCP6_IP_ROUTE

import enum
import logging
import os
import pathlib
import subprocess

from .lease import Family, LeaseRecord


class TriggerOutcome(enum.Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TriggerRunner:
    def __init__(self, scripts_dir, prefix: str = "lease_trigger_",
                 prefix6: str = "lease_trigger_"):
        self.scripts_dir = pathlib.Path(scripts_dir)
        self.prefixes = {Family.INET: prefix, Family.INET6: prefix6}

    def script_path(self, interface: str, family: Family) -> pathlib.Path:
        return self.scripts_dir / f"{self.prefixes[family]}{interface}"

    def run(self, record: LeaseRecord) -> TriggerOutcome:
        script = self.script_path(record.interface, record.family)
        if not script.is_file() or not os.access(script, os.X_OK):
            logging.debug("no trigger script %s", script)
            return TriggerOutcome.SKIPPED

        env = os.environ.copy()
        env.update(record.environ())
        logging.debug("exec %s (%s)", script,
                      " ".join(f"{k}={v}" for k, v in record.environ().items()))
        try:
            proc = subprocess.run([str(script)], env=env, check=False,
                                  capture_output=True)
        except (OSError, ValueError) as exc:
            logging.error("failed to run %s: %s", script, exc)
            return TriggerOutcome.FAILED

        if proc.returncode != 0:
            logging.error("Trigger script execution was unsuccessful: exit status %d (path: %s)",
                          proc.returncode, script)
            return TriggerOutcome.FAILED
        return TriggerOutcome.SUCCEEDED
