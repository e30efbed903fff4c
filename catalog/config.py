"""Runtime configuration for the catalog backend.

Settings come from environment variables, read once when the application
starts. Deployments have used several names for the same value (Vercel,
Vite and Next.js prefixes), so each setting lists its aliases in priority
order and the first non-empty one wins. A ``.env`` file in the working
directory is loaded first when present.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

SUPABASE_URL_VARS = ("SUPABASE_URL", "VITE_SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
SUPABASE_KEY_VARS = (
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "VITE_SUPABASE_ANON_KEY",
    "NEXT_PUBLIC_SUPABASE_ANON_KEY",
)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:3001",
    "https://build-it-records.vercel.app",
    "https://builditrecords.com",
    "https://www.builditrecords.com",
]


def first_env(*names: str, default: str = "") -> str:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return default


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_status_overrides(value: str) -> Dict[str, int]:
    """Parse ``"artist=404,release=404"`` into ``{"artist": 404, ...}``.

    Malformed entries raise ``ValueError`` so a typo fails at startup
    instead of silently keeping the default.
    """
    overrides: Dict[str, int] = {}
    for item in _csv(value):
        endpoint, sep, code = item.partition("=")
        if not sep or not endpoint.strip():
            raise ValueError(f"Invalid CATALOG_EMPTY_STATUS entry: {item!r}")
        status = int(code.strip())
        if not 200 <= status <= 599:
            raise ValueError(f"Invalid HTTP status in CATALOG_EMPTY_STATUS: {status}")
        overrides[endpoint.strip()] = status
    return overrides


@dataclass
class Settings:
    supabase_url: str = ""
    supabase_key: str = ""
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    default_limit: int = 50
    strategy_timeout: Optional[float] = 10.0
    resolve_deadline: Optional[float] = 30.0
    rest_timeout: int = 15
    empty_status: Dict[str, int] = field(default_factory=dict)
    rate_limit_per_minute: int = 100
    rate_limit_whitelist: List[str] = field(default_factory=list)
    rate_limit_max_clients: int = 10000

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def empty_status_for(self, endpoint: str) -> int:
        """HTTP status used when ``endpoint`` resolves nothing and no fallback applies."""
        return self.empty_status.get(endpoint, 200)


def _optional_float(value: str, default: Optional[float]) -> Optional[float]:
    if not value:
        return default
    number = float(value)
    return number if number > 0 else None


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build ``Settings`` from the environment (and ``.env`` if present)."""
    env_path = env_file or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)

    origins = first_env("CORS_ORIGINS", "ALLOWED_ORIGINS")
    return Settings(
        supabase_url=first_env(*SUPABASE_URL_VARS).rstrip("/"),
        supabase_key=first_env(*SUPABASE_KEY_VARS),
        cors_origins=_csv(origins) if origins else list(DEFAULT_CORS_ORIGINS),
        log_level=first_env("CATALOG_LOG_LEVEL", "LOG_LEVEL", default="INFO").upper(),
        default_limit=int(first_env("CATALOG_DEFAULT_LIMIT", default="50")),
        strategy_timeout=_optional_float(first_env("CATALOG_STRATEGY_TIMEOUT"), 10.0),
        resolve_deadline=_optional_float(first_env("CATALOG_RESOLVE_DEADLINE"), 30.0),
        rest_timeout=int(first_env("CATALOG_REST_TIMEOUT", default="15")),
        empty_status=parse_status_overrides(first_env("CATALOG_EMPTY_STATUS")),
        rate_limit_per_minute=int(first_env("RATE_LIMIT_PER_MINUTE", default="100")),
        rate_limit_whitelist=_csv(first_env("RATE_LIMIT_WHITELIST")),
        rate_limit_max_clients=int(first_env("RATE_LIMIT_MAX_CLIENTS", default="10000")),
    )
