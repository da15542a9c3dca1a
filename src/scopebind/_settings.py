"""Environment-driven settings for the container.

Every field can be set through a ``SCOPEBIND_``-prefixed environment variable,
e.g. ``SCOPEBIND_INIT_METHOD=setup`` or ``SCOPEBIND_STRICT_SCOPE_TEARDOWN=1``.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._registry import Lifetime


class ContainerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SCOPEBIND_",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    default_lifetime: Lifetime = Field(
        default=Lifetime.TRANSIENT,
        description="Lifetime used by `Container.register` and `@service` when none is given",
    )
    init_method: str | None = Field(
        default="init",
        description="Name of a no-argument method called on every newly built instance; empty disables it",
    )
    strict_scope_teardown: bool = Field(
        default=False,
        description="Raise UnknownScopeError when ending a scope that is not active",
    )

    @field_validator("default_lifetime", mode="before")
    @classmethod
    def validate_lifetime(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("init_method")
    @classmethod
    def validate_init_method(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not v.isidentifier():
            raise ValueError(f"init_method must be a valid attribute name, got {v!r}")
        return v

    @classmethod
    def load(cls) -> ContainerSettings:
        """Load settings from the environment, falling back to defaults."""
        return cls()
