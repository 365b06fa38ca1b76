"""Email provider factory.

The provider is chosen once from settings and then shared by every dispatch;
there is no fallback from one provider to another at send time.

Provides get_provider() / set_provider() to swap implementations:
- SMTPProvider for a local or corporate relay (default)
- SESProvider for Amazon SES
- FakeProvider for development and testing
"""

from mailroom.config import Settings, get_settings
from mailroom.provider.port import DeliveryError, DeliveryProvider, SendReceipt

__all__ = [
    "DeliveryError",
    "DeliveryProvider",
    "SendReceipt",
    "build_provider",
    "get_provider",
    "reset_provider",
    "set_provider",
]


def _build_smtp(settings: Settings) -> DeliveryProvider:
    from mailroom.provider.smtp import SMTPProvider

    return SMTPProvider(
        from_email=settings.from_email,
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout,
    )


def _build_ses(settings: Settings) -> DeliveryProvider:
    from mailroom.provider.ses import SESProvider

    return SESProvider(
        from_email=settings.from_email,
        region=settings.aws_region,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        timeout=settings.ses_timeout,
    )


def _build_fake(settings: Settings) -> DeliveryProvider:
    from mailroom.provider.fake import FakeProvider

    return FakeProvider()


_FACTORIES = {
    "smtp": _build_smtp,
    "ses": _build_ses,
    "fake": _build_fake,
}

_current_provider: DeliveryProvider | None = None


def build_provider(settings: Settings) -> DeliveryProvider:
    """Construct the provider named by ``settings.email_provider``."""
    try:
        factory = _FACTORIES[settings.email_provider]
    except KeyError:
        raise ValueError(f"Unknown email provider: {settings.email_provider}") from None
    return factory(settings)


def get_provider() -> DeliveryProvider:
    """Return the active provider, building it from settings on first use."""
    global _current_provider
    if _current_provider is None:
        _current_provider = build_provider(get_settings())
    return _current_provider


def set_provider(provider: DeliveryProvider) -> None:
    """Override the active provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_provider() -> None:
    """Forget the active provider so the next call rebuilds it from settings."""
    global _current_provider
    _current_provider = None
