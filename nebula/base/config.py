"""
Pydantic configuration models for the OpenNebula provider.

Validates connection settings and wait policies at initialization time
instead of silently passing bad values to the XML-RPC client.
"""

from __future__ import annotations

import os
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


class WaitPolicy(BaseModel):
    """Polling policy used while waiting for a VM to change state.

    All durations are in seconds.
    """

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=600.0, ge=0, description="Give up after this many seconds")
    delay: float = Field(default=10.0, ge=0, description="Sleep before the first probe")
    min_poll_interval: float = Field(default=3.0, ge=0, description="Shortest sleep between probes")
    max_poll_interval: float = Field(default=10.0, ge=0, description="Longest sleep between probes")
    backoff_factor: float = Field(default=2.0, ge=1, description="Sleep multiplier per pending probe")


class OpenNebulaConfig(BaseModel):
    """Configuration for an OpenNebula XML-RPC endpoint.

    Values are resolved in order:
    1. Explicit values passed in the config dict.
    2. Environment variables (OPENNEBULA_ENDPOINT, OPENNEBULA_USERNAME,
       OPENNEBULA_PASSWORD).
    """

    model_config = ConfigDict(extra="forbid")

    endpoint: str | None = Field(
        default=None, description="XML-RPC endpoint (e.g. 'http://one:2633/RPC2')"
    )
    username: str | None = Field(default=None, description="OpenNebula user name")
    password: str | None = Field(default=None, description="OpenNebula password or token")
    wait: WaitPolicy = Field(default_factory=WaitPolicy, description="State polling policy")

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing settings."""
        env_map = {
            "endpoint": "OPENNEBULA_ENDPOINT",
            "username": "OPENNEBULA_USERNAME",
            "password": "OPENNEBULA_PASSWORD",
        }
        for field, env_var in env_map.items():
            if not values.get(field):
                values[field] = os.environ.get(env_var)
        return values

    @model_validator(mode="after")
    def validate_endpoint(self) -> OpenNebulaConfig:
        """Ensure an endpoint is set."""
        if not self.endpoint:
            raise ValueError(
                "OpenNebula endpoint is required. Set it explicitly or via "
                "the OPENNEBULA_ENDPOINT environment variable."
            )
        return self

    @property
    def session(self) -> str:
        """Session string sent as the first argument of every call."""
        return f"{self.username or ''}:{self.password or ''}"


# Map provider names to their config models for dynamic validation
CONFIG_REGISTRY: dict[str, type[BaseModel]] = {
    "opennebula": OpenNebulaConfig,
}


def validate_config(cloud_provider: str, config: dict) -> BaseModel:
    """Validate and return a typed config model for the given provider.

    Args:
        cloud_provider: The provider name (e.g. 'opennebula').
        config: Raw configuration dictionary.

    Returns:
        A validated Pydantic config model.

    Raises:
        ValueError: If the provider is unknown.
        pydantic.ValidationError: If the config is invalid.
    """
    model = CONFIG_REGISTRY.get(cloud_provider)
    if model is None:
        raise ValueError(f"No config model registered for provider: {cloud_provider}")
    return model(**config)


__all__ = [
    "WaitPolicy",
    "OpenNebulaConfig",
    "CONFIG_REGISTRY",
    "validate_config",
]
