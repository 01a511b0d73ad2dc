"""
Pydantic models for the REST API.

Field names follow the camelCase JSON the API speaks; Python attributes are
snake_case.
"""

from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from wagateway.config import DEFAULT_SESSION_ID


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ─── Sessions ────────────────────────────────────────────────────────


class CreateSessionRequest(ApiModel):
    """POST /api/sessions/create request body."""

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class SessionInfo(ApiModel):
    session_id: str = Field(alias="sessionId")
    status: str
    connected: bool
    has_qr: bool = Field(alias="hasQR")
    user: Optional[dict[str, Any]] = None
    created_at: str = Field(alias="createdAt")


class SessionListResponse(ApiModel):
    sessions: list[SessionInfo]
    count: int


class PairingCodeRequest(ApiModel):
    phone_number: str = Field(alias="phoneNumber", min_length=1)

    @field_validator("phone_number")
    @classmethod
    def digits_only(cls, value: str) -> str:
        digits = "".join(ch for ch in value if ch.isdigit())
        if not digits:
            raise ValueError("phone number must contain digits")
        return digits


# ─── Messages ────────────────────────────────────────────────────────


class SendMessageRequest(ApiModel):
    """POST /api/messages/send request body."""

    session_id: str = Field(default=DEFAULT_SESSION_ID, alias="sessionId")
    to: str = Field(min_length=1)
    message: str = Field(min_length=1)


class MediaPayload(ApiModel):
    media_url: str = Field(alias="mediaUrl", min_length=1)
    caption: Optional[str] = None
    media_type: Literal["image", "video", "audio"] = Field(
        default="image", alias="mediaType"
    )

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {self.media_type: {"url": self.media_url}}
        if self.caption:
            content["caption"] = self.caption
        return content


class SendMediaRequest(MediaPayload):
    """POST /api/messages/send-media request body."""

    session_id: str = Field(default=DEFAULT_SESSION_ID, alias="sessionId")
    to: str = Field(min_length=1)


class LegacySendMessageRequest(ApiModel):
    """POST /send-message request body (default session)."""

    jid: str = Field(min_length=1)
    message: str = Field(min_length=1)


class LegacySendMediaRequest(MediaPayload):
    """POST /send-media request body (default session)."""

    jid: str = Field(min_length=1)


class SendMessageResponse(ApiModel):
    success: bool = True
    message_id: str = Field(alias="messageId")


# ─── Webhook ─────────────────────────────────────────────────────────


class RegisterWebhookRequest(ApiModel):
    """POST /api/webhook/register request body."""

    url: str = Field(min_length=1)
    secret: Optional[str] = None

    @field_validator("url")
    @classmethod
    def http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid url: {e}") from None
        if not url.host:
            raise ValueError("url must include a host")
        return value
