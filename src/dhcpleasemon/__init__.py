
# dhcpleasemon - run per-interface trigger scripts on DHCP lease changes.
# This package only exposes a version string for "pip show"; the daemon
# lives in dhcpleasemon.daemon.

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version(__name__)
except PackageNotFoundError:        # running from a checkout
    __version__ = "0.0.0+dev"
