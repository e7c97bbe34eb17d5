# neoscatter/errors.py
from __future__ import annotations


class NeoScatterError(RuntimeError):
    """Base class for failures raised by the scatter pipeline."""


class NetworkError(NeoScatterError):
    """CAD request failed, timed out, or came back with a non-2xx status."""


class DecodeError(NeoScatterError):
    """CAD response is not JSON or lacks the expected fields/data shape."""


class ParseError(NeoScatterError, ValueError):
    """A value inside a row could not be interpreted (lane digit, date text, number)."""
