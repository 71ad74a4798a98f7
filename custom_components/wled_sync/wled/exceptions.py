"""Errors raised by the WLED client.

None of these ever reach Home Assistant: the coordinator catches each kind at
its boundary, logs it and carries on.
"""

from __future__ import annotations


class WLEDError(Exception):
    """Base class for all WLED communication errors."""


class TransportError(WLEDError):
    """The push channel or an HTTP request failed at the transport level."""


class CommandError(WLEDError):
    """An outbound state command failed or was rejected by the device."""


class ParseError(WLEDError):
    """An inbound payload was not a valid JSON state document."""
