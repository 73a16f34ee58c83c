# Exceptions raised by the lease monitor.


class DhcpLeaseMonError(Exception):
    pass


class ConfigError(DhcpLeaseMonError):
    """Invalid or incomplete configuration."""


class LeaseFileError(DhcpLeaseMonError):
    """The metadata of a watched lease file could not be read.

    Lease files are expected to exist for every monitored interface, so this
    is fatal for the monitor; the caller decides whether to exit.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot stat lease file {path}: {reason}")
        self.path = path
        self.reason = reason
