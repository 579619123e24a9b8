"""Runtime settings read from the environment."""
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "claude-3-haiku-20240307"  # Cheapest model is plenty for short descriptions
DEFAULT_ENRICHMENT_URL = "http://localhost:8765"
DEFAULT_PORT = 8765


@dataclass
class Settings:
    db_path: Path
    enrichment_url: str = DEFAULT_ENRICHMENT_URL
    enrichment_timeout: float = 30.0
    model: str = DEFAULT_MODEL
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment. Raises ValueError on a bad timeout."""
        db_path = os.getenv("SHOE_STORE_DB")
        raw_timeout = os.getenv("SHOE_STORE_ENRICHMENT_TIMEOUT", "30")
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(f"SHOE_STORE_ENRICHMENT_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from None
        return cls(
            db_path=Path(db_path) if db_path else Path.cwd() / "shoe-store.json",
            enrichment_url=os.getenv("SHOE_STORE_ENRICHMENT_URL", DEFAULT_ENRICHMENT_URL),
            enrichment_timeout=timeout,
            model=model_from_env(),
            log_level=os.getenv("LOG_LEVEL", "WARNING"),
        )


def model_from_env() -> str:
    """Claude model used by the details server."""
    return os.getenv("SHOE_STORE_MODEL", DEFAULT_MODEL)
