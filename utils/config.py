"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name, "").strip()
    return int(value) if value else None


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Valuation
    valuation_year: Optional[int] = field(default_factory=lambda: _optional_int("VALUATION_YEAR"))
    equipment_values_file: str = field(
        default_factory=lambda: os.getenv("EQUIPMENT_VALUES_FILE", "")
    )
    default_equipment_value: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_EQUIPMENT_VALUE", "500"))
    )
    exact_year_bonus: float = field(
        default_factory=lambda: float(os.getenv("EXACT_YEAR_BONUS", "0"))
    )

    # Host-side result cache
    analysis_cache_size: int = field(
        default_factory=lambda: int(os.getenv("ANALYSIS_CACHE_SIZE", "128"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def valuation_settings(self):
        """Build engine ValuationSettings from this configuration."""
        from core.appraisal_engine.tables import ValuationSettings, load_equipment_values

        settings = ValuationSettings(
            default_equipment_value=self.default_equipment_value,
            exact_year_bonus=self.exact_year_bonus,
        )
        if self.equipment_values_file:
            settings = settings.with_equipment_overrides(
                load_equipment_values(self.equipment_values_file)
            )
        return settings

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "valuation_year": self.valuation_year,
            "equipment_values_file": self.equipment_values_file,
            "default_equipment_value": self.default_equipment_value,
            "exact_year_bonus": self.exact_year_bonus,
            "analysis_cache_size": self.analysis_cache_size,
        }
