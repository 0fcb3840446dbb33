from .client import OneClient
from .compute import Compute

__all__ = ["OneClient", "Compute"]
