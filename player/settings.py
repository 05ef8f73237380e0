from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

logger = logging.getLogger(__name__)


class PlayerSettings(BaseModel):
    """Runtime knobs for the player, read from ``FUNNEL_*`` environment variables."""

    tick_interval_ms: int = Field(50, gt=0)
    response_card_delay_ms: int = Field(2000, ge=0)
    continue_label: str = "Continue"
    finish_label: str = "Finish"
    max_nesting_depth: int = Field(8, gt=0)


_ENV_VARS = {
    "tick_interval_ms": "FUNNEL_TICK_INTERVAL_MS",
    "response_card_delay_ms": "FUNNEL_RESPONSE_CARD_DELAY_MS",
    "continue_label": "FUNNEL_CONTINUE_LABEL",
    "finish_label": "FUNNEL_FINISH_LABEL",
    "max_nesting_depth": "FUNNEL_MAX_NESTING_DEPTH",
}


def load_settings() -> PlayerSettings:
    """Build settings from the environment; bad values fall back to defaults."""
    defaults = PlayerSettings()
    values = {}
    for field, env_name in _ENV_VARS.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            PlayerSettings(**{field: raw})
        except ValueError:
            logger.warning(
                "%s=%r is invalid; using default %r", env_name, raw, getattr(defaults, field)
            )
            continue
        values[field] = raw
    return PlayerSettings(**values)
