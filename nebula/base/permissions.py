"""
OpenNebula permission bits.

Permissions are written the Unix way: three octal digits for
owner, group and other, where each digit adds up ``4`` (use),
``2`` (manage) and ``1`` (admin). ``"642"`` therefore grants the owner
use+manage, the group use and everybody else manage.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from .exceptions import InvalidPermissionsError

_USE, _MANAGE, _ADMIN = 4, 2, 1
_SETS = ("owner", "group", "other")


class Permissions(BaseModel):
    """The nine use/manage/admin flags of an OpenNebula resource."""

    model_config = ConfigDict(frozen=True)

    owner_u: int = 0
    owner_m: int = 0
    owner_a: int = 0
    group_u: int = 0
    group_m: int = 0
    group_a: int = 0
    other_u: int = 0
    other_m: int = 0
    other_a: int = 0

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, str]) -> Permissions:
        """Read ``PERMISSIONS/OWNER_U`` … from a flattened info response."""
        values: dict[str, int] = {}
        for field in cls.model_fields:
            raw = attributes.get(f"PERMISSIONS/{field.upper()}", "0")
            values[field] = 1 if raw.strip() == "1" else 0
        return cls(**values)

    def as_args(self) -> tuple[int, ...]:
        """Flags in the order ``one.*.chmod`` expects them."""
        return tuple(getattr(self, field) for field in type(self).model_fields)


def validate_permissions(value: str) -> list[str]:
    """Return every problem found in *value*; empty when it is valid."""
    problems: list[str] = []
    if len(value) != 3:
        problems.append(f"{value!r} has to specify 3 permission sets: owner-group-other")
    if not all("0" <= c <= "7" for c in value):
        problems.append(
            f"Each character in {value!r} should specify a Unix-like permission set "
            "with a number from 0 to 7"
        )
    return problems


def parse_permissions(value: str) -> Permissions:
    """Parse ``"642"``-style permissions.

    Raises:
        InvalidPermissionsError: If *value* is not three octal digits.
    """
    problems = validate_permissions(value)
    if problems:
        raise InvalidPermissionsError("; ".join(problems))

    flags: dict[str, int] = {}
    for name, digit in zip(_SETS, value):
        bits = int(digit)
        flags[f"{name}_u"] = 1 if bits & _USE else 0
        flags[f"{name}_m"] = 1 if bits & _MANAGE else 0
        flags[f"{name}_a"] = 1 if bits & _ADMIN else 0
    return Permissions(**flags)


def permission_string(perms: Permissions | None) -> str:
    """Format *perms* back into ``"642"`` form; ``""`` for ``None``."""
    if perms is None:
        return ""
    digits = []
    for name in _SETS:
        bits = (
            getattr(perms, f"{name}_u") * _USE
            + getattr(perms, f"{name}_m") * _MANAGE
            + getattr(perms, f"{name}_a") * _ADMIN
        )
        digits.append(str(bits))
    return "".join(digits)


def change_permissions(
    client: Any,
    resource_id: int,
    perms: Permissions,
    command: str = "one.vm.chmod",
) -> str:
    """Apply *perms* to a resource through its ``chmod`` RPC.

    Args:
        client: RPC collaborator exposing ``call(command, *params)``.
        resource_id: Numeric ID of the resource.
        perms: Flags to apply.
        command: chmod method of the resource type.

    Returns:
        The raw RPC reply.
    """
    return client.call(command, resource_id, *perms.as_args())
