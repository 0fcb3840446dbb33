"""
Structured logging for Nebulajack.

Every record is one JSON line. VM operations bind their context once
(service, operation, VM id) and log through the returned adapter, so all
records of one operation, including every poll of a state wait, share a
``request_id``::

    log = nj_logger.bind(service="compute", operation="create_instance", instance_id="42")
    log.info("Waiting for VM (42) to be in state running")
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, MutableMapping

PROVIDER = "opennebula"

_CONTEXT_FIELDS = ("request_id", "provider", "service", "operation", "instance_id")


def _new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class StructuredFormatter(logging.Formatter):
    """Render a record and its bound VM context as a JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in _CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = f"{type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return json.dumps(entry)


class OperationLogger(logging.LoggerAdapter):
    """Adapter stamping a fixed operation context onto each record.

    Per-call ``extra`` values override the bound ones.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context: Any) -> OperationLogger:
        """Return a child adapter with *context* added, keeping the request id."""
        return OperationLogger(self.logger, {**self.extra, **context})


class NebulajackLogger:
    """Owns the ``nebulajack`` logger and hands out bound operation adapters."""

    def __init__(self, name: str = "nebulajack") -> None:
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def bind(
        self,
        *,
        service: str | None = None,
        operation: str | None = None,
        instance_id: str | int | None = None,
        request_id: str | None = None,
    ) -> OperationLogger:
        """Start an operation context.

        Args:
            service: Service name (e.g. 'compute').
            operation: Operation name (e.g. 'create_instance').
            instance_id: ID of the VM the operation acts on.
            request_id: Correlation ID; a fresh one is generated if omitted.
        """
        context = {
            "provider": PROVIDER,
            "service": service,
            "operation": operation,
            "instance_id": None if instance_id is None else str(instance_id),
            "request_id": request_id or _new_request_id(),
        }
        return OperationLogger(self.logger, context)


# Module-level singleton
nj_logger = NebulajackLogger()
