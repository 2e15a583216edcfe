"""Environment-driven settings for spine-cloudevents.

Manifesto:
    Behaviour that an embedding service may want to flip without a code
    change (default spec version, strict attribute checking, log output)
    lives in one validated settings object instead of module globals.

    - **Pydantic validation:** Type-checked when first loaded
    - **Environment-driven:** ``CLOUDEVENTS_*`` env vars and ``.env`` files
    - **Sensible defaults:** Spec version 1.0, permissive attribute checks

Examples:
    >>> from spine_cloudevents.settings import get_settings
    >>> get_settings().default_spec_version
    <SpecVersion.V1_0: '1.0'>

Tags:
    settings, configuration, pydantic, environment, spine-cloudevents

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from spine_cloudevents.spec_version import SpecVersion


class CloudEventsSettings(BaseSettings):
    """Settings shared by every attribute map in the process.

    Fields
    ──────
    default_spec_version : Version used by ``AttributeMap.with_defaults()``
    strict_attributes    : Default for the map's ``strict`` flag
    log_level            : Structlog log level
    json_logs            : JSON renderer (True), console (False), auto (None)
    service_name         : ``service.name`` stamped on every log line
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOUDEVENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Attributes ───────────────────────────────────────────────
    default_spec_version: SpecVersion = Field(default=SpecVersion.V1_0)
    strict_attributes: bool = Field(
        default=False,
        description="Type-check core attributes and reject unknown extension keys",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None
    service_name: str = "spine-cloudevents"


_settings_cache: dict[str, CloudEventsSettings] = {}


def get_settings(*, _force_reload: bool = False) -> CloudEventsSettings:
    """Load, validate, and cache a :class:`CloudEventsSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = CloudEventsSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "CloudEventsSettings",
    "get_settings",
    "clear_settings_cache",
]
