"""
Commute Log Errors
==================

Only persistence failures and configuration absence surface to the host.
Inadmissible input and state-mismatch no-ops are handled locally and never
raised.
"""


class CommuteLogError(Exception):
    """Base class for errors surfaced by commutelog."""
    pass


class StoreError(CommuteLogError):
    """Raised when the commute store cannot load or save."""
    pass


class EndpointNotConfiguredError(CommuteLogError):
    """Raised when the home or work endpoint is missing at startup."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"No endpoint configured for '{identifier}'. "
            f"Add it to the store or to the 'endpoints' section of the config"
        )
