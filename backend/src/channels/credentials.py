"""Typed per-channel credentials.

Each channel type has its own model; together they form a tagged union keyed
by `channel_type`. Credentials are validated once, when the connection is
created, and parsed back into the same model on every dispatch, so adapters
read named fields instead of probing an untyped blob.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .types import ChannelType


class CredentialsError(Exception):
    """Raised when stored or submitted credentials do not match the channel's model."""


class _Credentials(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def phone_number(self) -> Optional[str]:
        return None

    @property
    def display_name(self) -> Optional[str]:
        return None


class WhatsAppOfficialCredentials(_Credentials):
    """WhatsApp Cloud API (direct Graph API access)."""
    channel_type: Literal["whatsapp_official"] = "whatsapp_official"
    phone_number_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    waba_id: Optional[str] = None
    business_phone: Optional[str] = None
    verified_name: Optional[str] = None

    @property
    def phone_number(self) -> Optional[str]:
        return self.business_phone

    @property
    def display_name(self) -> Optional[str]:
        return self.verified_name


class WhatsAppMetaCredentials(_Credentials):
    """WhatsApp Business API through a Meta solution partner."""
    channel_type: Literal["whatsapp_meta"] = "whatsapp_meta"
    api_key: str = Field(..., min_length=1)
    base_url: Optional[str] = None
    business_phone: Optional[str] = None
    verified_name: Optional[str] = None

    @property
    def phone_number(self) -> Optional[str]:
        return self.business_phone

    @property
    def display_name(self) -> Optional[str]:
        return self.verified_name


class WhatsAppUnofficialCredentials(_Credentials):
    """WhatsApp Web session bridged through an Evolution API instance."""
    channel_type: Literal["whatsapp_unofficial"] = "whatsapp_unofficial"
    base_url: str = Field(..., min_length=1)
    instance: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)
    session_phone: Optional[str] = None
    profile_name: Optional[str] = None

    @property
    def phone_number(self) -> Optional[str]:
        return self.session_phone

    @property
    def display_name(self) -> Optional[str]:
        return self.profile_name


class _TwilioCredentials(_Credentials):
    account_sid: str = Field(..., min_length=1)
    auth_token: str = Field(..., min_length=1)
    from_number: str = Field(..., min_length=1)
    friendly_name: Optional[str] = None

    @property
    def phone_number(self) -> Optional[str]:
        return self.from_number

    @property
    def display_name(self) -> Optional[str]:
        return self.friendly_name


class TwilioSmsCredentials(_TwilioCredentials):
    channel_type: Literal["twilio_sms"] = "twilio_sms"


class TwilioVoiceCredentials(_TwilioCredentials):
    channel_type: Literal["twilio_voice"] = "twilio_voice"
    voice: str = "alice"
    language: str = "en-US"


class TelegramCredentials(_Credentials):
    channel_type: Literal["telegram"] = "telegram"
    bot_token: str = Field(..., min_length=1)
    bot_username: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.bot_username


class _MetaPageCredentials(_Credentials):
    page_id: str = Field(..., min_length=1)
    page_access_token: str = Field(..., min_length=1)
    page_name: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.page_name


class InstagramCredentials(_MetaPageCredentials):
    channel_type: Literal["instagram"] = "instagram"


class MessengerCredentials(_MetaPageCredentials):
    channel_type: Literal["messenger"] = "messenger"


class TikTokCredentials(_Credentials):
    channel_type: Literal["tiktok"] = "tiktok"
    access_token: str = Field(..., min_length=1)
    business_id: str = Field(..., min_length=1)
    account_name: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.account_name


class EmailCredentials(_Credentials):
    channel_type: Literal["email"] = "email"
    smtp_host: str = Field(..., min_length=1)
    smtp_port: int = Field(587, ge=1, le=65535)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    from_address: str = Field(..., min_length=3)
    from_name: Optional[str] = None
    use_tls: bool = True

    @property
    def display_name(self) -> Optional[str]:
        return self.from_name or self.from_address


class WebchatCredentials(_Credentials):
    channel_type: Literal["webchat"] = "webchat"
    relay_url: str = Field(..., min_length=1)
    widget_token: str = Field(..., min_length=1)
    widget_name: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.widget_name


ChannelCredentials = Annotated[
    Union[
        WhatsAppOfficialCredentials,
        WhatsAppMetaCredentials,
        WhatsAppUnofficialCredentials,
        TwilioSmsCredentials,
        TwilioVoiceCredentials,
        TelegramCredentials,
        InstagramCredentials,
        MessengerCredentials,
        TikTokCredentials,
        EmailCredentials,
        WebchatCredentials,
    ],
    Field(discriminator="channel_type"),
]

_credentials_adapter: TypeAdapter = TypeAdapter(ChannelCredentials)


def parse_credentials(channel_type: ChannelType, data: dict[str, Any]) -> ChannelCredentials:
    """
    Validate raw credential data against the model for `channel_type`.

    A `channel_type` key already present in `data` must agree with the
    argument; it is filled in when absent.

    Raises:
        CredentialsError: If fields are missing, malformed, or unknown
    """
    payload = dict(data)
    declared = payload.setdefault("channel_type", channel_type.value)
    if declared != channel_type.value:
        raise CredentialsError(
            f"Credentials declare channel_type '{declared}' but connection is '{channel_type.value}'"
        )
    try:
        return _credentials_adapter.validate_python(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise CredentialsError(
            f"Invalid {channel_type.value} credentials: {fields}"
        ) from e
