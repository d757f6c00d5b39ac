"""Runtime configuration.

Values come from ``ROOMHUB_*`` environment variables, falling back to the
defaults below. ``cors_origins`` takes a comma separated list.
"""
from __future__ import annotations

from typing import Annotated, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import DEFAULT_ROOM_ID, DEFAULT_ROOM_NAME, MESSAGE_HISTORY_LIMIT

ENV_PREFIX = "ROOMHUB_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])

    default_room_id: str = DEFAULT_ROOM_ID
    default_room_name: str = DEFAULT_ROOM_NAME
    message_history_limit: int = Field(default=MESSAGE_HISTORY_LIMIT, ge=1)

    # "owner": only the section owner may delete it. "member": anyone in the room.
    section_delete_policy: Literal["owner", "member"] = "owner"
    # mentionAll notifies the sender too when they own a section.
    mention_all_includes_sender: bool = True
    # Send an ``error`` event back on rejected requests instead of dropping them.
    explicit_rejections: bool = True
    reject_blank_messages: bool = False

    # Envelopes queued for one client before it is cut off. 0 never cuts off.
    outbox_limit: int = Field(default=1000, ge=0)

    # Seconds an empty room may sit idle before eviction. 0 keeps rooms forever.
    room_idle_ttl: float = Field(default=0.0, ge=0)
    janitor_interval: float = Field(default=30.0, gt=0)

    @field_validator("default_room_id")
    @classmethod
    def _room_id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("default_room_id must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


__all__ = ["Settings", "ENV_PREFIX"]
