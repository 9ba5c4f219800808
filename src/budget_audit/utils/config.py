"""
Configuration utilities for the Budget Audit tool.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

DEFAULT_MARKETING_TAGS = ["usar-pontos-agora"]


class Config:
    """Configuration manager for the Budget Audit project."""

    def __init__(self, env_file: Optional[str] = None) -> None:
        """Initialize configuration.

        If an env_file path is provided, load environment variables from it.
        Otherwise, do not auto-load a .env file to keep defaults predictable.
        """
        self.env_file = env_file
        self._load_environment()
        self._config = self._load_config()

    def _load_environment(self) -> None:
        """Load environment variables from explicit .env file if provided."""
        if not self.env_file:
            return
        env_path = Path(self.env_file)
        if env_path.exists():
            load_dotenv(env_path)

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        return {
            # Core settings
            "log_level": self._get_str("LOG_LEVEL", default="INFO"),
            "documents_dir": self._get_str("DOCUMENTS_DIR", default="documents"),
            # Severity thresholds
            "percentage_threshold": self._get_float("CRITICAL_DIFF_THRESHOLD_PCT", default=0.5),
            "absolute_threshold": self._get_float("CRITICAL_DIFF_THRESHOLD_ABS", default=50.0),
            # Normalization settings
            "minor_unit_price_threshold": self._get_float("MINOR_UNIT_PRICE_THRESHOLD", default=1000.0),
            # Marketing tags that carry business meaning
            "marketing_tags": self._get_list("WATCHED_MARKETING_TAGS", default=DEFAULT_MARKETING_TAGS),
        }

    def _get_str(self, key: str, default: str = "") -> str:
        """Get string configuration value."""
        if self.env_file is None:
            return default
        return os.getenv(key, default)

    def _get_float(self, key: str, default: float = 0.0) -> float:
        """Get float configuration value."""
        if self.env_file is None:
            return default
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    def _get_list(self, key: str, default: List[str]) -> List[str]:
        """Get comma separated list configuration value (lowercased)."""
        if self.env_file is None:
            return list(default)
        raw = os.getenv(key)
        if not raw:
            return list(default)
        values = [part.strip().lower() for part in raw.split(",")]
        return [value for value in values if value] or list(default)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if configuration key exists."""
        return key in self._config
