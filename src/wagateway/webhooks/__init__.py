"""
Outbound webhook notifications.
"""

from wagateway.webhooks.dispatcher import (
    SIGNATURE_HEADER,
    WEBHOOK_EVENTS,
    WebhookConfig,
    WebhookDispatcher,
    sign_payload,
    verify_signature,
)

__all__ = [
    "SIGNATURE_HEADER",
    "WEBHOOK_EVENTS",
    "WebhookConfig",
    "WebhookDispatcher",
    "sign_payload",
    "verify_signature",
]
