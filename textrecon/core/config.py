from datetime import datetime
from pathlib import Path
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Base paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    RAW_DATA_DIR: Path = DATA_DIR / "raw"
    PROCESSED_DATA_DIR: Path = DATA_DIR / "processed"

    # File Names
    EXPORT_FILE_NAME: str = "conversation.xlsx"

    # Speaker rules
    DEFAULT_CLIENT_NAME: str = "Client"
    USER_IDENTIFIERS: Tuple[str, ...] = ("you", "me", "myself")
    CLIENT_IDENTIFIERS: Tuple[str, ...] = ("client",)

    # Timestamp model (exports say "Eastern Standard Time")
    TIMEZONE: str = "America/New_York"
    FALLBACK_ANCHOR: datetime = datetime.fromisoformat("2025-08-16T20:44:26+00:00")
    FALLBACK_WINDOW_DAYS: int = 30
    FALLBACK_STRATEGY: Literal["random", "sequential"] = "random"
    RANDOM_SEED: Optional[int] = None

    # Block assembly
    MAX_LOOKAHEAD: int = 5

    # Review
    REVIEW_CONFIDENCE_THRESHOLD: float = 0.7

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class RuleSet(BaseModel):
    """
    Speaker rule data handed to a pipeline instance.
    Frozen so that several pipelines can run side by side with different rules.
    """

    user_identifiers: Tuple[str, ...] = ("you", "me", "myself")
    client_identifiers: Tuple[str, ...] = ("client",)
    default_client_name: str = "Client"

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, s: "Settings") -> "RuleSet":
        return cls(
            user_identifiers=tuple(i.lower() for i in s.USER_IDENTIFIERS),
            client_identifiers=tuple(i.lower() for i in s.CLIENT_IDENTIFIERS),
            default_client_name=s.DEFAULT_CLIENT_NAME,
        )

    @property
    def known_identifiers(self) -> Tuple[str, ...]:
        return tuple(self.user_identifiers) + tuple(self.client_identifiers)


settings = Settings()
