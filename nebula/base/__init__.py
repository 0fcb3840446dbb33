"""Abstract service blueprints and core utilities.

The blueprint defines the VM lifecycle every provider implements; the
core utilities (attribute flattening, state polling, attribute
reconciliation) are provider-agnostic and usable on their own.
"""

from .compute import ComputeBlueprint
from .attributes import flatten
from .waiter import Pending, Reached, Failed, PollOutcome, wait_for
from .reconcile import synchronize, serialize
from .supported_services import existing_services, existing_cloud_providers


__all__ = [
    "ComputeBlueprint",
    "flatten",
    "Pending",
    "Reached",
    "Failed",
    "PollOutcome",
    "wait_for",
    "synchronize",
    "serialize",
    "existing_services",
    "existing_cloud_providers",
]
