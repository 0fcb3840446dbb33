"""XML-RPC transport for the OpenNebula API."""

from __future__ import annotations

import xmlrpc.client
from typing import Any

from nebula.base.config import OpenNebulaConfig
from nebula.base.exceptions import TransportError


def is_success(command: str, result: Any) -> str:
    """Unpack an OpenNebula reply ``[success, body, error_code, ...]``.

    Returns:
        The body as a string (IDs come back as integers).

    Raises:
        TransportError: If the server flagged the call as failed or the
            reply does not have the expected shape.
    """
    if not isinstance(result, (list, tuple)) or len(result) < 2:
        raise TransportError(f"Unexpected reply to {command}: {result!r}", command=command)
    if not result[0]:
        code = result[2] if len(result) > 2 and isinstance(result[2], int) else None
        raise TransportError(f"{command} failed: {result[1]}", command=command, code=code)
    return str(result[1])


class OneClient:
    """Thin XML-RPC client for an OpenNebula endpoint.

    Attributes:
        endpoint: URL of the ``RPC2`` endpoint.
        proxy: Underlying :class:`xmlrpc.client.ServerProxy`.
    """

    def __init__(self, config: OpenNebulaConfig) -> None:
        self.endpoint = config.endpoint
        self._session = config.session
        self.proxy = xmlrpc.client.ServerProxy(config.endpoint, allow_none=True)

    def call(self, command: str, *params: Any) -> str:
        """Invoke *command* with the session string prepended to *params*.

        Args:
            command: Remote method name, e.g. ``one.vm.info``.
            *params: Positional parameters of the method.

        Returns:
            The reply body.

        Raises:
            TransportError: On a failed reply, an XML-RPC fault, or a
                network error.
        """
        try:
            result = getattr(self.proxy, command)(self._session, *params)
        except xmlrpc.client.Fault as e:
            raise TransportError(
                f"{command} raised fault {e.faultCode}: {e.faultString}",
                command=command,
                code=e.faultCode,
            ) from e
        except xmlrpc.client.ProtocolError as e:
            raise TransportError(
                f"{command} failed with HTTP {e.errcode}: {e.errmsg}",
                command=command,
            ) from e
        except OSError as e:
            raise TransportError(f"Could not reach {self.endpoint}: {e}", command=command) from e
        return is_success(command, result)
