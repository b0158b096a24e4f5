"""
Central configuration for the purchase-order receiving console.

API endpoint, credentials, default notes and dashboard settings are defined here.
Override via environment variables or by passing a Config instance directly.

Settings priority (highest wins):
  1. Environment variables
  2. config/receiving_settings.json  (admin-editable, persisted)
  3. Hardcoded defaults in this file
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

DEFAULT_API_URL        = "http://localhost:8000"
DEFAULT_RECEIPT_NOTE   = "Received via supervisor entry"
DEFAULT_HISTORY_NOTE   = "Standard delivery"


@dataclass
class Config:
    # --- Order-management API ---
    api_base_url: str = field(
        default_factory=lambda: os.getenv("GARAGE_API_URL", DEFAULT_API_URL).rstrip("/")
    )
    api_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("GARAGE_API_TIMEOUT", "15"))
    )
    # No automatic retries: every failure goes back to the operator.

    # --- Session ---
    # A raw JWT, or a file holding one (written by whatever performed the login).
    api_token: Optional[str] = field(
        default_factory=lambda: os.getenv("GARAGE_API_TOKEN")
    )
    token_file: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["GARAGE_TOKEN_FILE"]) if os.getenv("GARAGE_TOKEN_FILE") else None
    )

    # --- Receiving defaults ---
    default_receipt_note: str = DEFAULT_RECEIPT_NOTE   # sent to the API when notes are blank
    default_history_note: str = DEFAULT_HISTORY_NOTE   # shown in the local delivery log

    # --- Dashboard ---
    dashboard_host: str = field(
        default_factory=lambda: os.getenv("DASHBOARD_HOST", "127.0.0.1")
    )
    dashboard_port: int = field(
        default_factory=lambda: int(os.getenv("DASHBOARD_PORT", "8080"))
    )

    def __post_init__(self) -> None:
        """Overlay runtime-tunable settings from receiving_settings.json if present."""
        config_dir = Path(os.getenv("CONFIG_DIR", str(PROJECT_ROOT / "config")))
        settings_file = config_dir / "receiving_settings.json"
        if not settings_file.exists():
            return
        _type_map: dict[str, type] = {
            "api_base_url":          str,
            "api_timeout_seconds":   float,
            "default_receipt_note":  str,
            "default_history_note":  str,
            "dashboard_host":        str,
            "dashboard_port":        int,
        }
        # Keys whose environment variable is set keep the environment value
        _env_vars: dict[str, str] = {
            "api_base_url":          "GARAGE_API_URL",
            "api_timeout_seconds":   "GARAGE_API_TIMEOUT",
            "dashboard_host":        "DASHBOARD_HOST",
            "dashboard_port":        "DASHBOARD_PORT",
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key in _env_vars and os.getenv(_env_vars[key]):
                    continue
                if key in _type_map and hasattr(self, key):
                    setattr(self, key, _type_map[key](val))
        except Exception as exc:
            logger.warning("Failed to load receiving_settings.json: %s", exc)
        self.api_base_url = self.api_base_url.rstrip("/")

    def resolve_token(self) -> Optional[str]:
        """Return the configured JWT, preferring GARAGE_API_TOKEN over the token file."""
        if self.api_token:
            return self.api_token.strip()
        if self.token_file and self.token_file.exists():
            token = self.token_file.read_text(encoding="utf-8").strip()
            return token or None
        return None
