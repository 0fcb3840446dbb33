"""Universal service factory.

Provides :func:`universal_factory`, the single entry-point for creating
service clients. The function dispatches to the provider factory based on
``cloud_provider`` and returns a typed instance via ``@overload`` signatures
so IDEs can autocomplete methods.
"""

from typing import overload, Any

from nebula.base import (
    ComputeBlueprint,
    existing_cloud_providers,
    existing_services,
)
from nebula.base.config import validate_config
from nebula.opennebula.factory import SERVICE_REGISTRY as OPENNEBULA_SERVICES


# Nested factory registry: cloud_provider -> service registry
_FACTORY_REGISTRY: dict[str, dict[str, type]] = {
    "opennebula": OPENNEBULA_SERVICES,
}


@overload
def universal_factory(
    service_name: existing_services, cloud_provider: existing_cloud_providers, config: dict
) -> ComputeBlueprint: ...


@overload
def universal_factory(
    service_name: str, cloud_provider: str, config: dict
) -> Any: ...


def universal_factory(
    service_name: str,
    cloud_provider: str,
    config: dict,
) -> Any:
    """
    Universal factory function to create service instances based on provider and service name.
    Args:
        service_name: The name of the service (e.g., 'compute').
        cloud_provider: The provider (e.g., 'opennebula').
        config: Configuration dictionary to initialize the service instance.
    Returns:
        An instance of the requested service class.
    Raises:
        ValueError: If the provider or service is not supported.
        pydantic.ValidationError: If the config is invalid.
    """
    if cloud_provider not in _FACTORY_REGISTRY:
        raise ValueError(f"Unsupported cloud provider: {cloud_provider}")

    provider_services = _FACTORY_REGISTRY[cloud_provider]

    if service_name not in provider_services:
        raise ValueError(
            f"Unsupported service '{service_name}' for provider '{cloud_provider}'"
        )

    service_class = provider_services[service_name]
    configObj = validate_config(cloud_provider, config)
    return service_class(configObj)
