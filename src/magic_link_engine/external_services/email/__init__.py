from magic_link_engine.external_services.email.base import EmailProvider, EmailProviderConfig
from magic_link_engine.external_services.email.factory import EmailServiceFactory

__all__ = [
    "EmailProvider",
    "EmailProviderConfig",
    "EmailServiceFactory",
]
