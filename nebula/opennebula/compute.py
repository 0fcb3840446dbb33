"""OpenNebula implementation of the Compute blueprint."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from nebula.base.attributes import flatten
from nebula.base.compute import ComputeBlueprint
from nebula.base.config import OpenNebulaConfig, WaitPolicy
from nebula.base.exceptions import (
    AttributeParseError,
    ComputeError,
    ConvergenceError,
    InstanceNotFoundError,
    RootElementNotFoundError,
    TransportError,
)
from nebula.base.logger import OperationLogger, nj_logger
from nebula.base.permissions import (
    Permissions,
    change_permissions,
    parse_permissions,
    permission_string,
)
from nebula.base.reconcile import serialize, synchronize
from nebula.base.waiter import Failed, Pending, PollOutcome, Reached, wait_for
from nebula.opennebula.client import OneClient

VM_ELEMENT_NAME = "VM"
DEFAULT_IP_ATTRIBUTE = "TEMPLATE/CONTEXT/ETH0_IP"
USER_TEMPLATE = "USER_TEMPLATE"

# VM and LCM states as reported in STATE / LCM_STATE
STATE_ACTIVE = 3
STATE_DONE = 6
LCM_RUNNING = 3

# one.vm.update: 0 replaces the user template, 1 merges into it
UPDATE_MERGE = 1

_SERVICE = "compute"


def _int(attributes: Mapping[str, str], key: str) -> int | None:
    try:
        return int(attributes[key])
    except (KeyError, ValueError):
        return None


def _int_id(instance_id: str | int) -> int:
    try:
        return int(instance_id)
    except (TypeError, ValueError) as e:
        raise InstanceNotFoundError(f"Invalid VM ID {instance_id!r}") from e


class Compute(ComputeBlueprint):
    """OpenNebula virtual machine service.

    Attributes:
        client: RPC collaborator exposing ``call(command, *params)``.
        wait_policy: Polling policy for every state wait.
    """

    def __init__(
        self,
        config: OpenNebulaConfig | None = None,
        *,
        client: Any = None,
        wait_policy: WaitPolicy | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Validated endpoint configuration. Used to build a
                :class:`OneClient` when *client* is not given, and as the
                source of the default wait policy.
            client: Pre-built RPC client (anything with a ``call`` method).
            wait_policy: Overrides ``config.wait``.
        """
        if client is None:
            if config is None:
                raise ValueError("Either a config or a client is required")
            client = OneClient(config)
        self.client = client
        if wait_policy is None:
            wait_policy = config.wait if config is not None else WaitPolicy()
        self.wait_policy = wait_policy

    # ── info ─────────────────────────────────────────────────────────

    def load_vm_info(self, instance_id: str | int) -> dict[str, str]:
        """Fetch ``one.vm.info`` and flatten the ``<VM>`` element.

        Raises:
            TransportError: If the RPC call fails.
            AttributeParseError: If the reply cannot be flattened.
        """
        resp = self.client.call("one.vm.info", _int_id(instance_id))
        return flatten(resp, VM_ELEMENT_NAME)

    def _probe(
        self,
        instance_id: str,
        classify: Callable[[dict[str, str]], PollOutcome],
        log: OperationLogger,
    ) -> Callable[[], PollOutcome]:
        def probe() -> PollOutcome:
            log.debug("Refreshing VM info...")
            try:
                attributes = self.load_vm_info(instance_id)
            except (TransportError, AttributeParseError) as e:
                return Failed(e)
            return classify(attributes)

        return probe

    def _read_vm_info(self, instance_id: str | int) -> dict[str, str]:
        try:
            return self.load_vm_info(instance_id)
        except RootElementNotFoundError as e:
            raise InstanceNotFoundError(f"Could not find VM by ID {instance_id}") from e
        except AttributeParseError as e:
            raise ComputeError(f"Couldn't parse info of VM {instance_id}: {e}") from e

    def _wait(self, probe: Callable[[], PollOutcome], pending: str, target: str) -> Any:
        policy = self.wait_policy
        return wait_for(
            probe,
            pending=pending,
            target=target,
            timeout=policy.timeout,
            delay=policy.delay,
            min_poll_interval=policy.min_poll_interval,
            max_poll_interval=policy.max_poll_interval,
            backoff_factor=policy.backoff_factor,
        )

    # ── waits ────────────────────────────────────────────────────────

    def _wait_for_state(self, instance_id: str, state: str) -> dict[str, str]:
        log = nj_logger.bind(service=_SERVICE, operation=f"wait_for_{state}", instance_id=instance_id)

        def classify(attributes: dict[str, str]) -> PollOutcome:
            vm_state = _int(attributes, "STATE")
            lcm_state = _int(attributes, "LCM_STATE")
            log.info(f"VM is currently in state {vm_state} and in LCM state {lcm_state}")
            if vm_state == STATE_DONE:
                return Reached(attributes, "done")
            if vm_state == STATE_ACTIVE and lcm_state == LCM_RUNNING and state == "running":
                return Reached(attributes, "running")
            return Pending(f"{vm_state}/{lcm_state}")

        log.info(f"Waiting for VM ({instance_id}) to be in state {state}")
        try:
            attributes = self._wait(self._probe(instance_id, classify, log), "anythingelse", state)
        except ConvergenceError as e:
            raise ComputeError(
                f"Error waiting for virtual machine ({instance_id}) to be in state {state.upper()}: {e}"
            ) from e

        reached = "done" if _int(attributes, "STATE") == STATE_DONE else "running"
        if reached != state:
            raise ComputeError(
                f"Virtual machine ({instance_id}) reached state {reached.upper()} "
                f"while waiting for {state.upper()}"
            )
        return attributes

    def wait_for_running(self, instance_id: str) -> dict[str, str]:
        """Block until the VM is ACTIVE/RUNNING and return its info.

        Raises:
            ComputeError: On timeout, probe failure, or if the VM ends up DONE.
        """
        return self._wait_for_state(instance_id, "running")

    def wait_for_done(self, instance_id: str) -> dict[str, str]:
        """Block until the VM is DONE and return its last info."""
        return self._wait_for_state(instance_id, "done")

    def wait_for_attribute(self, instance_id: str, attribute: str) -> dict[str, str]:
        """Block until *attribute* shows up in the VM info, whatever its value.

        Raises:
            ComputeError: On timeout or probe failure.
        """

        def classify(attributes: dict[str, str]) -> PollOutcome:
            if attribute in attributes:
                return Reached(attributes, attribute)
            return Pending("attributeNotFound")

        log = nj_logger.bind(service=_SERVICE, operation="wait_for_attribute", instance_id=instance_id)
        log.info(f"Waiting for VM ({instance_id}) to have attribute {attribute}")
        try:
            return self._wait(self._probe(instance_id, classify, log), "attributeNotFound", attribute)
        except ConvergenceError as e:
            raise ComputeError(
                f"Error waiting for attribute {attribute} of virtual machine {instance_id}: {e}"
            ) from e

    # ── lifecycle ────────────────────────────────────────────────────

    def create_instance(
        self,
        name: str,
        template_id: int,
        permissions: str,
        **kwargs: Any,
    ) -> str:
        """Instantiate a template and wait for the VM to run.

        Supported kwargs:
            wait_for_attribute, attributes.

        Returns:
            Instance ID.

        Raises:
            InvalidPermissionsError: If *permissions* is malformed.
            TransportError: If the instantiate or chmod call fails.
            ComputeError: If the VM does not reach RUNNING (or the
                awaited attribute) in time.
        """
        perms = parse_permissions(permissions)
        attributes = kwargs.get("attributes")

        instance_id = self.client.call(
            "one.template.instantiate",
            int(template_id),
            name,
            False,
            serialize(attributes),
            False,
        )
        log = nj_logger.bind(service=_SERVICE, operation="create_instance", instance_id=instance_id)
        log.info(f"Instantiated template {template_id} as VM {instance_id}")

        self.wait_for_running(instance_id)

        attribute = kwargs.get("wait_for_attribute")
        if attribute:
            self.wait_for_attribute(instance_id, attribute)

        change_permissions(self.client, _int_id(instance_id), perms, "one.vm.chmod")
        return instance_id

    def get_instance(self, instance_id: str, **kwargs: Any) -> dict[str, Any]:
        """Read a VM.

        Supported kwargs:
            ip_attribute: Info path holding the IP (default
                ``TEMPLATE/CONTEXT/ETH0_IP``).
            attributes: Declared user attributes to reconcile against
                ``USER_TEMPLATE``.

        Raises:
            InstanceNotFoundError: If the reply holds no ``<VM>`` element.
            TransportError: If the RPC call fails.
            ComputeError: If the reply cannot be parsed.
        """
        if not instance_id:
            raise InstanceNotFoundError("VM ID not set")
        info = self._read_vm_info(instance_id)

        ip_attribute = kwargs.get("ip_attribute") or DEFAULT_IP_ATTRIBUTE
        return {
            "instance_id": info.get("ID", str(instance_id)),
            "name": info.get("NAME", ""),
            "uid": _int(info, "UID"),
            "gid": _int(info, "GID"),
            "uname": info.get("UNAME", ""),
            "gname": info.get("GNAME", ""),
            "state": _int(info, "STATE"),
            "lcm_state": _int(info, "LCM_STATE"),
            "ip": info.get(ip_attribute, ""),
            "permissions": permission_string(Permissions.from_attributes(info)),
            "attributes": synchronize(kwargs.get("attributes"), info, USER_TEMPLATE),
        }

    def instance_exists(self, instance_id: str) -> bool:
        """A VM in state DONE (6) counts as gone."""
        try:
            vm = self.get_instance(instance_id)
        except InstanceNotFoundError:
            return False
        return vm["state"] != STATE_DONE

    def update_instance(
        self,
        instance_id: str,
        *,
        permissions: str | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        """Push changed permissions and user attributes.

        Only the declared attributes whose reported value differs are
        sent, merged into the user template.

        Raises:
            InstanceNotFoundError: If the VM info holds no ``<VM>`` element.
            InvalidPermissionsError: If *permissions* is malformed.
        """
        vm_id = _int_id(instance_id)
        log = nj_logger.bind(service=_SERVICE, operation="update_instance", instance_id=instance_id)
        changed = False

        if permissions is not None:
            resp = change_permissions(self.client, vm_id, parse_permissions(permissions), "one.vm.chmod")
            log.info(f"Successfully updated permissions of VM {resp}")
            changed = True

        if attributes:
            current = synchronize(attributes, self._read_vm_info(vm_id), USER_TEMPLATE)
            drifted = {k: v for k, v in attributes.items() if current[k] != str(v)}
            if drifted:
                self.client.call("one.vm.update", vm_id, serialize(drifted), UPDATE_MERGE)
                log.info(f"Updated attributes {sorted(drifted)} of VM {instance_id}")
                changed = True

        if not changed:
            log.info("Nothing to update: permissions and attributes already match")

    def start_instance(self, instance_id: str) -> None:
        """Resume a powered-off VM and wait until it runs."""
        self.client.call("one.vm.action", "resume", _int_id(instance_id))
        self.wait_for_running(instance_id)

    def stop_instance(self, instance_id: str) -> None:
        """Power off a VM without waiting."""
        self.client.call("one.vm.action", "poweroff", _int_id(instance_id))

    def terminate_instance(self, instance_id: str) -> None:
        """Hard-terminate a VM and wait for state DONE.

        Raises:
            InstanceNotFoundError: If the VM does not exist.
            ComputeError: If the VM does not reach DONE in time.
        """
        self.get_instance(instance_id)
        resp = self.client.call("one.vm.action", "terminate-hard", _int_id(instance_id))
        self.wait_for_done(instance_id)
        nj_logger.bind(
            service=_SERVICE, operation="terminate_instance", instance_id=instance_id
        ).info(f"Successfully terminated VM {resp}")
