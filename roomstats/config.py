from functools import lru_cache
from pathlib import Path
from uuid import uuid4

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from roomstats.models.enums import ErrorLabelMode, NodeType


def _generate_node_id() -> str:
    return f"ND_{uuid4().hex[:12]}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Room Stats", description="Human readable service name")
    environment: str = Field(
        default="development",
        description="Deployment environment name, exported as the env label",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    node_id: str = Field(
        default_factory=_generate_node_id,
        description="Identifier of this node, exported as the node_id label",
    )
    node_type: NodeType = Field(
        default=NodeType.SERVER,
        description="Role of this node, exported as the node_type label",
    )

    metrics_namespace: str = Field(
        default="livekit", description="Namespace prefixed to every exported series"
    )
    metrics_error_label: ErrorLabelMode = Field(
        default=ErrorLabelMode.MESSAGE,
        description="How subscribe failures map to the error label: message or type",
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("node_type", mode="before")
    @classmethod
    def normalise_node_type(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("metrics_error_label", mode="before")
    @classmethod
    def normalise_error_label(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        return str(value).strip().upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
