"""Reconcile user-declared attributes with the values a VM reports."""

from __future__ import annotations

from typing import Any, Mapping

from .attributes import PATH_SEPARATOR


def synchronize(
    declared: Mapping[str, Any] | None,
    observed: Mapping[str, str] | None,
    observed_key_prefix: str,
) -> dict[str, str]:
    """Project *observed* values onto the keys of *declared*.

    Every declared key maps to the value found under
    ``<observed_key_prefix>/<key>`` in *observed*, or to ``""`` when the
    remote side does not report it. Keys only present remotely are ignored.

    Args:
        declared: Locally declared attributes. ``None`` means none.
        observed: Flattened VM info (see :func:`~nebula.base.attributes.flatten`).
        observed_key_prefix: Path under which the attributes live remotely,
            e.g. ``USER_TEMPLATE``.

    Returns:
        The reconciled attribute values, keyed like *declared*.
    """
    if not declared:
        return {}
    observed = observed or {}
    prefix = observed_key_prefix + PATH_SEPARATOR if observed_key_prefix else ""
    return {key: observed.get(prefix + key, "") for key in declared}


def serialize(declared: Mapping[str, Any] | None) -> str:
    """Render *declared* as sorted ``key=value`` lines (``""`` when empty)."""
    if not declared:
        return ""
    return "\n".join(f"{key}={value}" for key, value in sorted(declared.items()))
