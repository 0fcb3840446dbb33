"""
Poll a remote resource until it converges on a target state.

:func:`wait_for` repeatedly calls a *probe* and lets it classify the
current remote condition as :class:`Pending`, :class:`Reached` or
:class:`Failed`. Polling backs off exponentially but never faster than
``min_poll_interval``::

    def probe():
        attrs = flatten(client.call("one.vm.info", vm_id), "VM")
        if attrs.get("STATE") == "3":
            return Reached(attrs)
        return Pending(attrs.get("STATE"))

    attrs = wait_for(probe, pending="booting", target="running", timeout=600)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Union

from .exceptions import ProbeError, WaitTimeoutError

logger = logging.getLogger("nebulajack")


@dataclass(frozen=True)
class Pending:
    """The target has not been reached yet."""

    state: str | None = None


@dataclass(frozen=True)
class Reached:
    """The probe observed a terminal state; *data* is handed back to the caller."""

    data: Any = None
    state: str | None = None


@dataclass(frozen=True)
class Failed:
    """The probe could not determine the remote state."""

    cause: BaseException


PollOutcome = Union[Pending, Reached, Failed]


def wait_for(
    probe: Callable[[], PollOutcome],
    *,
    pending: str = "pending",
    target: str = "target",
    timeout: float = 600.0,
    delay: float = 0.0,
    min_poll_interval: float = 3.0,
    max_poll_interval: float = 10.0,
    backoff_factor: float = 2.0,
) -> Any:
    """Block until *probe* reports :class:`Reached` and return its data.

    Args:
        probe: Zero-argument callable returning a :data:`PollOutcome`.
        pending: Label describing the pending condition (for logs/errors).
        target: Label describing the awaited condition (for logs/errors).
        timeout: Seconds after which a still-pending wait gives up. The
            initial *delay* counts toward it.
        delay: Seconds to sleep before the first probe.
        min_poll_interval: Lower bound on the sleep between two probes.
        max_poll_interval: Cap on the sleep between two probes.
        backoff_factor: Multiplier applied to the sleep after each pending probe.

    Returns:
        The ``data`` of the :class:`Reached` outcome.

    Raises:
        ProbeError: The probe returned :class:`Failed`. Not retried.
        WaitTimeoutError: *timeout* elapsed while the probe kept reporting
            :class:`Pending`.
    """
    started = time.monotonic()
    interval = min_poll_interval
    ceiling = max(max_poll_interval, min_poll_interval)

    if delay > 0:
        logger.debug("Waiting %.1fs before polling for %s", delay, target)
        time.sleep(delay)

    attempt = 0
    while True:
        attempt += 1
        outcome = probe()

        if isinstance(outcome, Failed):
            logger.error("Probe failed while waiting for %s: %s", target, outcome.cause)
            raise ProbeError(
                f"Probe failed while waiting for {target}: {outcome.cause}",
                cause=outcome.cause,
            ) from outcome.cause

        if isinstance(outcome, Reached):
            logger.info("Reached %s after %d probe(s)", outcome.state or target, attempt)
            return outcome.data

        last_state = outcome.state or pending
        elapsed = time.monotonic() - started
        if elapsed >= timeout:
            logger.error(
                "Timed out after %.1fs waiting for %s (last state: %s)",
                elapsed,
                target,
                last_state,
            )
            raise WaitTimeoutError(
                f"Timeout while waiting for state to become '{target}' "
                f"(last state: '{last_state}', timeout: {timeout}s)",
                last_state=last_state,
                timeout=timeout,
            )

        logger.debug(
            "Attempt %d: still %s, next probe in %.1fs…",
            attempt,
            last_state,
            interval,
        )
        time.sleep(interval)
        interval = min(max(interval * backoff_factor, min_poll_interval), ceiling)
