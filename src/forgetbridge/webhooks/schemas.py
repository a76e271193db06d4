"""
Pydantic schemas for the chat-webhook delete-request payload.
"""

from pydantic import BaseModel, ConfigDict, Field


class WebhookFooter(BaseModel):
    """Embed footer; ``text`` carries signature and timestamp."""

    model_config = ConfigDict(extra="ignore")

    text: str | None = None
    icon_url: str | None = None


class WebhookEmbed(BaseModel):
    """One embed of the notification. Only the first is consulted."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    footer: WebhookFooter | None = None


class WebhookPayload(BaseModel):
    """Inbound webhook body."""

    model_config = ConfigDict(extra="ignore")

    embeds: list[WebhookEmbed] | None = Field(
        default=None,
        description="Embeds of the notification message",
    )


class WebhookAck(BaseModel):
    """Uniform acknowledgement for every accepted request."""

    success: bool = True


class WebhookErrorResponse(BaseModel):
    error: str
