"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from betstreak.services.stake.config import StakeConfig

logger = logging.getLogger(__name__)


class SchedulerConfig(BaseModel):
    """Background polling for the watch command and, optionally, the server."""

    check_interval_seconds: int = 60
    poll_in_server: bool = False


class TelegramAlertConfig(BaseModel):
    """Telegram notification toggles."""

    send_bet_alerts: bool = True


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")
    state_file: str = "database.json"

    # API Keys
    stake_api_token: str = ""
    logfire_token: str = ""

    # Telegram
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    environment: str = "development"

    # Nested configuration sections
    stake: StakeConfig = Field(default_factory=StakeConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    telegram: TelegramAlertConfig = Field(default_factory=TelegramAlertConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def state_path(self) -> Path:
        """Location of the tracker state document."""
        return self.data_dir / self.state_file

    @property
    def telegram_enabled(self) -> bool:
        return bool(
            self.telegram.send_bet_alerts
            and self.telegram_bot_token
            and self.telegram_chat_id
        )

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m betstreak init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["stake", "scheduler", "telegram"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name] or {}

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
