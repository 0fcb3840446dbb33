"""Compute (VM) service blueprint."""

from abc import ABC, abstractmethod
from typing import Any, Mapping


class ComputeBlueprint(ABC):
    """Abstract interface for the virtual machine lifecycle."""

    @abstractmethod
    def create_instance(
        self,
        name: str,
        template_id: int,
        permissions: str,
        **kwargs: Any,
    ) -> str:
        """Instantiate a VM from a template and block until it runs.

        Args:
            name: Name of the VM. An empty name lets the server pick one.
            template_id: ID of the VM template to instantiate.
            permissions: Unix-style permissions (e.g. ``"642"``).
            **kwargs: Provider-specific options:

                - ``wait_for_attribute``: Info attribute path
                  (e.g. ``TEMPLATE/CONTEXT/ETH0_IP``) to wait for after
                  the VM is running.
                - ``attributes``: Dict of user attributes to set on the VM.

        Returns:
            Instance ID.
        """

    @abstractmethod
    def get_instance(self, instance_id: str, **kwargs: Any) -> dict[str, Any]:
        """Return details for a single instance.

        Returns:
            Dict with ``instance_id``, ``name``, ``uid``, ``gid``,
            ``uname``, ``gname``, ``state``, ``lcm_state``, ``ip``,
            ``permissions`` and ``attributes``.
        """

    @abstractmethod
    def instance_exists(self, instance_id: str) -> bool:
        """Whether the instance exists and has not been terminated."""

    @abstractmethod
    def update_instance(
        self,
        instance_id: str,
        *,
        permissions: str | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        """Push changed permissions and/or user attributes."""

    @abstractmethod
    def start_instance(self, instance_id: str) -> None:
        """Resume a powered-off instance."""

    @abstractmethod
    def stop_instance(self, instance_id: str) -> None:
        """Power off a running instance (keep disks)."""

    @abstractmethod
    def terminate_instance(self, instance_id: str) -> None:
        """Terminate (destroy) an instance and wait until it is gone."""
