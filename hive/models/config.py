"""Configuration models for the application."""
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_MODELS = [
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-3.5-turbo-0125",
]


class OpenAIConfig(BaseModel):
    """OpenAI API configuration settings."""
    api_key: str = Field(default="", description="OpenAI API key")
    base_url: Optional[str] = Field(default=None, description="Override for the API base URL")
    organization: Optional[str] = Field(default=None, description="OpenAI organization ID")
    timeout: float = Field(default=60.0, description="Per-request timeout in seconds")
    max_retries: int = Field(default=2, description="Retries performed by the SDK itself")


class PollingConfig(BaseModel):
    """Settings for a poll-sleep-poll wait loop."""
    interval_ms: int = Field(default=1000, ge=0, description="Delay between status checks")
    max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum number of status checks; None waits until a terminal status"
    )

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0


class StorageConfig(BaseModel):
    """Local state file locations."""
    data_dir: Path = Field(default_factory=Path.cwd, description="Directory holding the state files")
    assistants_file: str = Field(default="assistants.json", description="Assistants document name")
    honeycombs_file: str = Field(default="honeycombs.json", description="Honeycombs document name")
    detect_conflicts: bool = Field(
        default=True,
        description="Refuse to overwrite a document that changed since it was read"
    )

    @property
    def assistants_path(self) -> Path:
        return Path(self.data_dir) / self.assistants_file

    @property
    def honeycombs_path(self) -> Path:
        return Path(self.data_dir) / self.honeycombs_file


class KnowledgeConfig(BaseModel):
    """Settings for honeycomb file ingestion."""
    extensions: List[str] = Field(default_factory=lambda: [".txt"], description="Recognised file extensions")
    upload_workers: int = Field(default=4, ge=1, description="Concurrent file registrations")
    store_prefix: str = Field(default="honeycomb_", description="Prefix for remote vector store names")

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]


class ChatConfig(BaseModel):
    """Interactive chat settings."""
    models: List[str] = Field(default_factory=lambda: list(DEFAULT_MODELS), description="Selectable models")
    exit_word: str = Field(default="exit", description="Input that leaves an interactive loop")


class AppConfig(BaseModel):
    """Main application configuration."""
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    run_polling: PollingConfig = Field(default_factory=PollingConfig)
    batch_polling: PollingConfig = Field(default_factory=PollingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    knowledge: KnowledgeConfig = Field(default_factory=KnowledgeConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
