"""Server configuration - reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS - comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Form definitions directory (None → FormStore default, forms/ at repo root)
    forms_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Seed for placeholder randomness (None = unseeded).  A fixed seed makes
    # every request produce the same placeholders, which is handy for demos.
    placeholder_seed: int | None = None


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    raw_seed = os.getenv("PLACEHOLDER_SEED")

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        forms_dir=os.getenv("SERVER_FORMS_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        placeholder_seed=int(raw_seed) if raw_seed else None,
    )
