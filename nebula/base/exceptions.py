"""
Nebulajack exception hierarchy.

Every failure surfaced by the library inherits from
:class:`NebulajackError`. Each concern (parsing, transport, waiting,
compute) has its own base class with sub-exceptions for the failure
modes callers usually want to tell apart.
"""

from __future__ import annotations

from typing import Any


# ── Base ──────────────────────────────────────────────────────────────
class NebulajackError(Exception):
    """Root exception for all Nebulajack errors."""


# ── Attribute parsing ────────────────────────────────────────────────
class AttributeParseError(NebulajackError):
    """Base exception for flattening an XML response."""


class RootElementNotFoundError(AttributeParseError):
    """The requested root element never appears in the document."""


class MalformedDocumentError(AttributeParseError):
    """The document is truncated or not well-formed XML."""


# ── Transport ────────────────────────────────────────────────────────
class TransportError(NebulajackError):
    """An XML-RPC call failed or returned an unsuccessful reply.

    Attributes:
        command: Remote method name (e.g. ``one.vm.info``).
        code: OpenNebula error code, when the server reported one.
    """

    def __init__(self, message: str, *, command: str | None = None, code: int | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.code = code


# ── State convergence ────────────────────────────────────────────────
class ConvergenceError(NebulajackError):
    """Base exception for waiting on a remote state."""


class WaitTimeoutError(ConvergenceError):
    """The target state was not reached within the timeout.

    Attributes:
        last_state: Label of the last pending observation.
        timeout: The timeout that elapsed, in seconds.
    """

    def __init__(self, message: str, *, last_state: Any = None, timeout: float | None = None) -> None:
        super().__init__(message)
        self.last_state = last_state
        self.timeout = timeout


class ProbeError(ConvergenceError):
    """A probe reported a failure; the wait was aborted.

    Attributes:
        cause: The exception reported by the probe.
    """

    def __init__(self, message: str, *, cause: BaseException) -> None:
        super().__init__(message)
        self.cause = cause


# ── Compute ───────────────────────────────────────────────────────────
class ComputeError(NebulajackError):
    """Base exception for compute/VM operations."""


class InstanceNotFoundError(ComputeError):
    """VM instance not found."""


# ── Permissions ──────────────────────────────────────────────────────
class InvalidPermissionsError(NebulajackError, ValueError):
    """Permission string is not three octal digits."""
