"""Nebulajack CLI: quick VM operations from the command line.

Usage examples::

    nebulajack get-instance 42
    nebulajack --config '{"endpoint": "http://one:2633/RPC2"}' terminate-instance 42
    nebulajack create-instance web 7 642 --kwargs '{"wait_for_attribute": "TEMPLATE/CONTEXT/ETH0_IP"}'

Connection settings not given in ``--config`` are read from
``OPENNEBULA_ENDPOINT``, ``OPENNEBULA_USERNAME`` and ``OPENNEBULA_PASSWORD``.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, get_args

from pydantic import ValidationError

from nebula.base.supported_services import existing_cloud_providers, existing_services


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``nebulajack`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="nebulajack",
        description="OpenNebula VM lifecycle CLI",
    )
    parser.add_argument(
        "--provider", "-p",
        default="opennebula",
        choices=get_args(existing_cloud_providers),
        help="Cloud provider",
    )
    parser.add_argument(
        "--service", "-s",
        default="compute",
        choices=get_args(existing_services),
        help="Cloud service",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default="{}",
        help='JSON config string (e.g. \'{"endpoint":"http://one:2633/RPC2"}\')',
    )
    parser.add_argument(
        "operation",
        help="Operation to perform (method name, e.g. get-instance)",
    )
    parser.add_argument(
        "args",
        nargs="*",
        help="Positional arguments for the operation",
    )
    parser.add_argument(
        "--kwargs", "-k",
        type=str,
        default="{}",
        help="JSON keyword arguments for the operation",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses arguments, creates a service client via the universal factory,
    and invokes the requested operation. Results are printed as JSON
    (dicts/lists) or plain text.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    try:
        config: dict[str, Any] = json.loads(ns.config)
    except json.JSONDecodeError as e:
        print(f"Invalid --config JSON: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        kwargs: dict[str, Any] = json.loads(ns.kwargs)
    except json.JSONDecodeError as e:
        print(f"Invalid --kwargs JSON: {e}", file=sys.stderr)
        sys.exit(1)

    from nebula.base.exceptions import NebulajackError
    from nebula.factory import universal_factory

    try:
        svc = universal_factory(ns.service, ns.provider, config)
    except (ValueError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Convert operation-name to method_name
    method_name = ns.operation.replace("-", "_")
    method = getattr(svc, method_name, None)
    if method_name.startswith("_") or method is None or not callable(method):
        print(
            f"Unknown operation '{ns.operation}' for {ns.provider}/{ns.service}",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        result = method(*ns.args, **kwargs)
    except (NebulajackError, TypeError, ValueError) as e:
        print(f"Operation failed: {e}", file=sys.stderr)
        sys.exit(1)

    if result is None:
        print("OK")
    elif isinstance(result, (dict, list)):
        print(json.dumps(result, indent=2, default=str))
    else:
        print(result)


if __name__ == "__main__":
    main()
