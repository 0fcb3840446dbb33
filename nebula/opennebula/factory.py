"""OpenNebula service factory.

Maps service names to their OpenNebula implementations.
``SERVICE_REGISTRY`` is consumed by :func:`nebula.factory.universal_factory`.
"""

from nebula.opennebula.compute import Compute


# Service registry for OpenNebula
SERVICE_REGISTRY: dict[str, type] = {
    "compute": Compute,
}
