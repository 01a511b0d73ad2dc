"""
Starlette application for the gateway.

Endpoints:
- /api/sessions/*: create, list, inspect, pair and delete sessions
- /api/messages/*: send text and media through a session
- /api/webhook/*: set the webhook destination
- /health, /status, /qr, /pairing-code, /send-message, /send-media:
  single-session endpoints bound to the "default" session

Services (registry, dispatcher) are built in the lifespan and kept on
``app.state``.
"""

import contextlib
import os
import sys
from typing import Optional

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from wagateway.config import DEFAULT_SESSION_ID, GatewayConfig, load_config
from wagateway.credentials import FileCredentialStore
from wagateway.errors import GatewayError
from wagateway.logger import get_logger, setup_logging
from wagateway.retry_cache import MessageRetryCache
from wagateway.routes import (
    health_routes,
    legacy_routes,
    message_routes,
    session_routes,
    webhook_routes,
)
from wagateway.sessions.registry import SessionRegistry
from wagateway.transport.base import load_transport_factory
from wagateway.webhooks.dispatcher import WebhookConfig, WebhookDispatcher

logger = get_logger(__name__)

routes = [
    Route("/health", health_routes.health_check, methods=["GET"]),
    Route("/status", health_routes.default_status, methods=["GET"]),
    Route("/qr", legacy_routes.get_qr, methods=["GET"]),
    Route("/pairing-code", legacy_routes.request_pairing_code, methods=["POST"]),
    Route("/send-message", legacy_routes.send_message, methods=["POST"]),
    Route("/send-media", legacy_routes.send_media, methods=["POST"]),
    Route("/api/sessions", session_routes.list_sessions, methods=["GET"]),
    Route("/api/sessions/create", session_routes.create_session, methods=["POST"]),
    Route(
        "/api/sessions/{session_id}/status",
        session_routes.get_session_status,
        methods=["GET"],
    ),
    Route("/api/sessions/{session_id}/qr", session_routes.get_session_qr, methods=["GET"]),
    Route(
        "/api/sessions/{session_id}/pairing-code",
        session_routes.request_session_pairing_code,
        methods=["POST"],
    ),
    Route(
        "/api/sessions/{session_id}", session_routes.delete_session, methods=["DELETE"]
    ),
    Route("/api/messages/send", message_routes.send_message, methods=["POST"]),
    Route("/api/messages/send-media", message_routes.send_media, methods=["POST"]),
    Route("/api/webhook", webhook_routes.get_webhook, methods=["GET"]),
    Route("/api/webhook/register", webhook_routes.register_webhook, methods=["POST"]),
]


async def startup(app: Starlette, config: GatewayConfig) -> None:
    """Build the services and bring up the default session."""
    logger.info("Application startup - initializing services")

    dispatcher = WebhookDispatcher(
        WebhookConfig(url=config.webhook_url, secret=config.webhook_secret),
        timeout=config.webhook_timeout,
    )
    registry = SessionRegistry(
        transport_factory=load_transport_factory(config.transport_factory),
        credential_store=FileCredentialStore(config.auth_dir),
        dispatcher=dispatcher,
        retry_cache=MessageRetryCache(),
        reconnect_delay=config.reconnect_delay,
    )
    app.state.config = config
    app.state.dispatcher = dispatcher
    app.state.registry = registry

    logger.info(
        f"Transport: {config.transport_factory}, credentials in {config.auth_dir}, "
        f"webhook: {config.webhook_url or '<none>'}"
    )

    if config.default_session:
        try:
            await registry.create(DEFAULT_SESSION_ID)
        except GatewayError as e:
            logger.error(f"Failed to create default session: {e}")


async def shutdown(app: Starlette) -> None:
    """Stop sessions (without logging out) and flush pending webhooks."""
    logger.info("Application shutdown - closing sessions")

    registry: Optional[SessionRegistry] = getattr(app.state, "registry", None)
    if registry is not None:
        await registry.shutdown()

    dispatcher: Optional[WebhookDispatcher] = getattr(app.state, "dispatcher", None)
    if dispatcher is not None:
        await dispatcher.aclose()


def create_app(config: Optional[GatewayConfig] = None) -> Starlette:
    """
    Build the Starlette app.

    With ``config=None`` the configuration is read from the environment when
    the app starts.
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        await startup(app, config or load_config())
        try:
            yield
        finally:
            await shutdown(app)

    return Starlette(
        debug=False,
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["*"],
                allow_headers=["*"],
            )
        ],
        lifespan=lifespan,
    )


app = create_app()


def run(config: Optional[GatewayConfig] = None, debug: bool = False) -> None:
    """Serve the app with uvicorn."""
    import uvicorn

    config = config or load_config()
    if debug:
        config.log_level = "DEBUG"
    setup_logging(level=config.log_level, log_file=config.log_file)

    logger.info(f"Server running on port {config.port}")
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    if "--debug" in sys.argv:
        os.environ["LOG_LEVEL"] = "DEBUG"
    run()
