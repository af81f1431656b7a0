"""Error taxonomy for a profile card run."""

from __future__ import annotations
from typing import Optional


class ProfileCardError(Exception):
    """Base class for fatal run errors."""


class PreconditionError(ProfileCardError):
    """Required credential, subject or input blob is missing."""


class RemoteError(ProfileCardError):
    """Non-success status or malformed payload from the remote service."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status if status is not None else 'no status'}: {message}")


class RenderError(ProfileCardError):
    """Rendering invariant violated (missing value, unparseable output)."""


class DegradedDataWarning(UserWarning):
    """A non-essential data point failed and was replaced by a fallback."""
