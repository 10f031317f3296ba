"""
Fatal error types raised by the experiment setup and the post-run analysis.
"""


class WlanQoSError(Exception):
    """Base class for errors that abort an experiment."""


class ConfigurationError(WlanQoSError):
    """Malformed topology or configuration, detected at setup time."""


class UnsupportedProtocolError(WlanQoSError):
    """A flow uses a transport protocol that no metric is defined for."""

    def __init__(self, protocol: int, flow_id: int):
        self.protocol = protocol
        self.flow_id = flow_id
        super().__init__(
            f"Flow {flow_id} uses unsupported protocol number {protocol} "
            f"(expected 6/TCP or 17/UDP)"
        )


class FlowRecordError(WlanQoSError, ValueError):
    """Malformed flow record dump."""


class MissingFlowRecordsError(WlanQoSError, FileNotFoundError):
    """The configured flow record dump does not exist."""
