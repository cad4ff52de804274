"""Failure taxonomy for the lookup pipeline.

None of these escape a lookup: fetchers recover them at the stage boundary
and the stage counts as having returned zero rows.
"""


class RatError(Exception):
    """Base class for lookup failures."""


class TransportFailure(RatError):
    """The request could not complete (connection error, timeout, non-200)."""


class DecodeFailure(RatError):
    """The response body does not decode into the expected shape."""


class EncodingFailure(RatError):
    """A query parameter cannot be percent-encoded."""
