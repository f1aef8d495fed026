from datetime import UTC, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Keeps datetimes naive so they stay compatible with SQLite
    (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Settings(BaseSettings):
    app_name: str = "Creepy Cards"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'creepy_cards.db'}"

    # Content gate (creepiness scoring)
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_rate_limit_rpm: int = 50
    creepiness_threshold: float = 0.5

    # Image generation
    gemini_api_key: str = ""
    gemini_image_model: str = "gemini-2.0-flash-exp"
    gateway_timeout_seconds: float = 0.0  # 0 disables the timeout
    style_suffix: str = (
        ", in the vibrant, colorful, and spooky art style reminiscent of classic Goosebumps book covers."
    )
    placeholder_image_url: str = "https://placehold.co/600x400.png"

    # Deck shape
    deck_size: int = 80
    eager_generation_count: int = 3
    look_ahead: int = 4  # current card + 3 ahead
    batch_size: int = 3

    user_cards_key: str = "creepyUserCards"
    notice_backlog: int = 50
    debug: bool = False

    model_config = {"env_prefix": "CREEPY_CARDS_", "env_file": ".env"}


settings = Settings()
