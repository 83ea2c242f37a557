import logging

from magic_link_engine.core.config import settings
from magic_link_engine.external_services.email.base import EmailProvider, EmailProviderConfig
from magic_link_engine.external_services.email.providers.console import ConsoleEmailProvider
from magic_link_engine.external_services.email.providers.sendgrid import SendGridEmailProvider

logger = logging.getLogger(__name__)


class EmailServiceFactory:
    @staticmethod
    def create(config: EmailProviderConfig) -> EmailProvider:
        provider_type = str(config.provider_type).lower()

        if provider_type == "sendgrid":
            return SendGridEmailProvider(config)
        if provider_type != "console":
            logger.warning(f"Unknown provider type: {config.provider_type}. Falling back to Console.")
        return ConsoleEmailProvider()

    @staticmethod
    def from_settings() -> EmailProvider:
        return EmailServiceFactory.create(
            EmailProviderConfig(
                provider_type=settings.EMAIL_PROVIDER,
                api_key=settings.EMAIL_PROVIDER_API_KEY,
                from_email=settings.EMAIL_SENDER,
                is_active=True,
            )
        )
