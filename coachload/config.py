"""Engine configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables. The engine never
reads settings on its own; callers resolve them once and pass the tables
and thresholds into the service functions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Immutable engine settings resolved from environment."""

    app_env: str = "dev"
    log_level: str = "INFO"

    # Reference data files (unset -> built-in defaults)
    rpe_table_path: Optional[str] = None
    phase_base_loads_path: Optional[str] = None
    norms_path: Optional[str] = None

    # Load-ratio windows and interpretation bands
    acwr_acute_days: int = 7
    acwr_chronic_days: int = 28
    acwr_under_max: float = 0.8
    acwr_optimal_max: float = 1.3
    acwr_warning_max: float = 1.5

    # Deload applied to the last week of each mesocycle
    deload_volume_drop: int = 15
    deload_intensity_drop: int = 5

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
    },
    "staging": {
        "log_level": "INFO",
    },
    "production": {
        "log_level": "WARNING",
    },
}


def _optional_path(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides.

    Malformed numeric overrides raise ValueError.
    """
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    acute = int(os.getenv("ACWR_ACUTE_DAYS", "7"))
    chronic = int(os.getenv("ACWR_CHRONIC_DAYS", "28"))
    if acute <= 0 or chronic <= acute:
        raise ValueError(f"ACWR windows must satisfy 0 < acute < chronic (got {acute}, {chronic})")

    return Settings(
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        rpe_table_path=_optional_path("RPE_TABLE_PATH"),
        phase_base_loads_path=_optional_path("PHASE_BASE_LOADS_PATH"),
        norms_path=_optional_path("NORMS_PATH"),
        acwr_acute_days=acute,
        acwr_chronic_days=chronic,
        acwr_under_max=float(os.getenv("ACWR_UNDER_MAX", "0.8")),
        acwr_optimal_max=float(os.getenv("ACWR_OPTIMAL_MAX", "1.3")),
        acwr_warning_max=float(os.getenv("ACWR_WARNING_MAX", "1.5")),
        deload_volume_drop=int(os.getenv("DELOAD_VOLUME_DROP", "15")),
        deload_intensity_drop=int(os.getenv("DELOAD_INTENSITY_DROP", "5")),
    )
