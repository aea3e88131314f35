import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the project root if present.

    Values already set in the process environment win.
    """
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    db_path: Path
    pubchem_delay_seconds: float
    product_cache_days: int
    ai_gateway_url: str
    ai_gateway_key: str
    ai_model: str
    log_level: str

    @staticmethod
    def from_env() -> "Settings":
        db_path = Path(os.environ.get("EPIQ_DB_PATH", "data/epiq.db").strip())
        delay = float(os.environ.get("PUBCHEM_DELAY_SECONDS", "1.5"))
        cache_days = int(os.environ.get("PRODUCT_CACHE_DAYS", "30"))
        gateway_url = os.environ.get("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1").strip()
        gateway_key = os.environ.get("AI_GATEWAY_KEY", "").strip()
        model = os.environ.get("AI_MODEL", "google/gemini-2.5-flash").strip()
        log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

        if delay < 0:
            raise RuntimeError("PUBCHEM_DELAY_SECONDS must not be negative")
        if cache_days < 1:
            raise RuntimeError("PRODUCT_CACHE_DAYS must be at least 1")

        return Settings(
            db_path=db_path,
            pubchem_delay_seconds=delay,
            product_cache_days=cache_days,
            ai_gateway_url=gateway_url,
            ai_gateway_key=gateway_key,
            ai_model=model,
            log_level=log_level,
        )
