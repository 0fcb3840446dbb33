"""Nebulajack: OpenNebula VM lifecycle over XML-RPC.

Entry point for the library. Import :func:`universal_factory` to create
a service client with a single call::

    from nebula import universal_factory

    compute = universal_factory("compute", "opennebula", {"endpoint": "http://one:2633/RPC2"})
"""

from .base import (
    ComputeBlueprint,
    flatten,
    wait_for,
    synchronize,
    serialize,
)
from .factory import universal_factory

__all__ = [
    "ComputeBlueprint",
    "flatten",
    "wait_for",
    "synchronize",
    "serialize",
    "universal_factory",
]
