"""Business (tenant) configuration model."""

from typing import Optional

from pydantic import Field

from .base import CamelModel


class LocationConfig(CamelModel):
    """Origin used for distance and service-area calculations."""

    office_address: str = ""
    distance_origin: str = ""
    """Address or "lat,lng" string. Falls back to office_address."""

    lat: float = 0.0
    lng: float = 0.0
    service_radius_miles: float = 15.0

    @property
    def origin(self) -> str:
        if self.lat or self.lng:
            return f"{self.lat},{self.lng}"
        return self.distance_origin or self.office_address


class MondayConfig(CamelModel):
    """CRM board mapping."""

    api_token_env: str = ""
    boards: dict[str, int] = Field(default_factory=dict)


class StripeConfig(CamelModel):
    """Payment provider settings."""

    api_key_env: str = ""
    default_currency: str = ""


class GmailConfig(CamelModel):
    """Outgoing mail identity."""

    sender: str = ""
    sender_name: str = ""


class ContactConfig(CamelModel):
    """Public contact details used by templates."""

    support_email: str = ""
    website_url: str = Field(default="", alias="websiteURL")
    logo_url: str = Field(default="", alias="logoURL")
    book_appointment_url: str = Field(default="", alias="bookAppointmentURL")
    phone: str = ""


class SlackConfig(CamelModel):
    """Notification settings."""

    enabled: bool = False
    webhook_env: str = ""


class EmailTemplateSettings(CamelModel):
    default_template: str = "original"
    available_templates: list[str] = Field(default_factory=list)


class TemplateConfig(CamelModel):
    email: dict[str, str] = Field(default_factory=dict)
    """Template name -> template path."""

    email_template_settings: EmailTemplateSettings = Field(
        default_factory=EmailTemplateSettings
    )


class BusinessPipelineConfig(CamelModel):
    """Which pipeline runs for which event."""

    default_form: str = ""
    """Pipeline key used for form events that don't name one."""

    triggers: dict[str, str] = Field(default_factory=dict)
    """Trigger key -> pipeline key."""


class BusinessConfig(CamelModel):
    """
    Configuration for one tenant.

    Parsed once from ``businesses/<id>.yaml`` and cached by the ConfigStore.
    An empty ``id`` in the document is replaced by the lookup key.
    """

    id: str = ""
    display_name: str = ""
    timezone: str = ""
    currency: str = ""
    location: LocationConfig = Field(default_factory=LocationConfig)
    monday: MondayConfig = Field(default_factory=MondayConfig)
    stripe: StripeConfig = Field(default_factory=StripeConfig)
    gmail: GmailConfig = Field(default_factory=GmailConfig)
    contact: ContactConfig = Field(default_factory=ContactConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    templates: TemplateConfig = Field(default_factory=TemplateConfig)
    pipelines: BusinessPipelineConfig = Field(default_factory=BusinessPipelineConfig)

    def pipeline_for_trigger(self, trigger_key: str) -> Optional[str]:
        """Get the pipeline key mapped to a trigger, or None."""
        return self.pipelines.triggers.get(trigger_key)
