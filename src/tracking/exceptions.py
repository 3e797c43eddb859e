"""Tracking-specific exceptions.

Domain rule violations use protean's ``ValidationError`` and missing
records ``ObjectNotFoundError``. Only boundary failures that have no
protean counterpart are defined here.
"""


class WebhookAuthenticationError(Exception):
    """A carrier webhook could not be authenticated (unknown secret, bad signature or stale timestamp)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
