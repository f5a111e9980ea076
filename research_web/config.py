from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError
from .llm import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_S

_HERE = Path(__file__).resolve()
_REPO_ROOT = _HERE.parents[1]


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    api_key: str
    port: int = 3000
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    model_timeout_s: float = DEFAULT_TIMEOUT_S
    cors_origins: list[str] = field(default_factory=list)
    static_dir: Path = Path("public")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        # Repo root .env for local dev; real environment variables win.
        load_dotenv(_REPO_ROOT / ".env", override=False)

        api_key = os.getenv("GROQ_API_KEY", "").strip()
        if not api_key:
            raise ConfigError("GROQ_API_KEY must be set; there is no built-in credential")

        try:
            port = int(os.getenv("PORT", "3000"))
            model_timeout_s = float(os.getenv("MODEL_TIMEOUT_S", str(DEFAULT_TIMEOUT_S)))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        return cls(
            api_key=api_key,
            port=port,
            base_url=os.getenv("GROQ_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL,
            model=os.getenv("GROQ_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
            model_timeout_s=model_timeout_s,
            cors_origins=_split_origins(os.getenv("RESEARCH_WEB_CORS_ORIGINS", "")),
            static_dir=Path(os.getenv("RESEARCH_WEB_STATIC_DIR", "public")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
