"""Pydantic schemas for the messaging API

Request models mirror the public JSON contract (camelCase on the wire,
snake_case in Python). Field limits are enforced here so malformed input is
rejected with VALIDATION_ERROR before any channel lookup.
"""

from typing import Annotated, List, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from channels.types import MediaKind


def _http_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("must be an http(s) URL")
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=False,
        extra="ignore",
    )


# Send Schemas

class SendMessageRequest(ApiModel):
    """POST /messages/send"""
    channel_id: int = Field(..., gt=0, description="Channel connection id")
    to: str = Field(..., min_length=1, max_length=20, description="Recipient address")
    message: str = Field(..., min_length=1, max_length=4096)
    message_type: Literal["text"] = "text"


class SendMediaRequest(ApiModel):
    """POST /messages/send-media"""
    channel_id: int = Field(..., gt=0)
    to: str = Field(..., min_length=1, max_length=20)
    media_type: MediaKind
    media_url: str = Field(..., min_length=1, max_length=2048)
    caption: Optional[str] = Field(None, max_length=1024)
    filename: Optional[str] = Field(None, max_length=255)

    @field_validator("media_url")
    @classmethod
    def check_media_url(cls, value: str) -> str:
        return _http_url(value)


class SendBatchRequest(ApiModel):
    """POST /messages/send-batch

    The item count is checked by the service so an oversized batch is
    reported as BATCH_SIZE_EXCEEDED rather than a generic validation error.
    """
    messages: List[SendMessageRequest] = Field(..., min_length=1)


class TemplateTextParameter(ApiModel):
    type: Literal["text"]
    text: str


class TemplateComponent(ApiModel):
    type: Literal["header", "body", "button"]
    parameters: List[Union[str, TemplateTextParameter]] = Field(default_factory=list)


class SendTemplateRequest(ApiModel):
    """POST /messages/send-template"""
    channel_id: int = Field(..., gt=0)
    to: str = Field(..., min_length=1, max_length=20)
    template_name: str = Field(..., min_length=1, max_length=255)
    template_language: str = Field("en", min_length=2, max_length=10)
    components: Optional[List[TemplateComponent]] = None


# Interactive Schemas

class InteractiveHeader(ApiModel):
    type: Literal["text", "image", "video", "document"]
    text: Optional[str] = None
    media_url: Optional[str] = None

    @model_validator(mode="after")
    def check_header_source(self):
        if self.type == "text" and not self.text:
            raise ValueError("text header requires 'text'")
        if self.type != "text":
            if not self.media_url:
                raise ValueError(f"{self.type} header requires 'mediaUrl'")
            _http_url(self.media_url)
        return self


class InteractiveBody(ApiModel):
    text: str = Field(..., min_length=1, max_length=1024)


class InteractiveFooter(ApiModel):
    text: str = Field(..., max_length=60)


class InteractiveContent(ApiModel):
    header: Optional[InteractiveHeader] = None
    body: InteractiveBody
    footer: Optional[InteractiveFooter] = None


class ReplyButton(ApiModel):
    id: str = Field(..., min_length=1, max_length=256)
    title: str = Field(..., min_length=1, max_length=20)


class ButtonOptions(ApiModel):
    type: Literal["button"]
    buttons: List[ReplyButton] = Field(..., min_length=1, max_length=3)


class ListRow(ApiModel):
    id: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=24)
    description: Optional[str] = Field(None, max_length=72)


class ListSection(ApiModel):
    title: Optional[str] = Field(None, max_length=24)
    rows: List[ListRow] = Field(..., min_length=1, max_length=10)


class ListOptions(ApiModel):
    type: Literal["list"]
    button: str = Field(..., min_length=1, max_length=20)
    sections: List[ListSection] = Field(..., min_length=1, max_length=10)


class SendInteractiveRequest(ApiModel):
    """POST /messages/send-interactive"""
    channel_id: int = Field(..., gt=0)
    to: str = Field(..., min_length=1, max_length=20)
    interactive_type: Literal["button", "list"]
    content: InteractiveContent
    options: Annotated[Union[ButtonOptions, ListOptions], Field(discriminator="type")]
