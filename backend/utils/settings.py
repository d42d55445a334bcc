"""
Translator Settings

Environment-driven configuration, read once at the application boundary
and injected into the translator. The translator never reads os.environ.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_COMBINATOR_ORDER = 999

_TRUTHY = {"1", "true", "yes", "on"}


class TranslatorSettings(BaseModel):
    default_order: int = DEFAULT_COMBINATOR_ORDER
    # Off by default: containment stops two hops from a combinator.
    containment_fixed_point: bool = False
    # Off by default: a negated complement such as neq passes through unchanged.
    symmetric_negation: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: [
        "http://localhost:5173",
        "http://localhost:3000",
    ])


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def load_settings(env_file: Optional[str] = None) -> TranslatorSettings:
    """Load settings from the environment (and a .env file if present)."""
    load_dotenv(env_file)

    settings = TranslatorSettings()
    settings.default_order = int(os.getenv("BT_DEFAULT_ORDER", settings.default_order))
    settings.containment_fixed_point = _env_flag(
        "BT_CONTAINMENT_FIXED_POINT", settings.containment_fixed_point
    )
    settings.symmetric_negation = _env_flag("BT_SYMMETRIC_NEGATION", settings.symmetric_negation)
    settings.log_level = os.getenv("BT_LOG_LEVEL", settings.log_level).upper()

    origins = os.getenv("BT_CORS_ORIGINS")
    if origins:
        settings.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

    return settings
