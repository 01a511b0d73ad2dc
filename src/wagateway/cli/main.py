"""
Top-level CLI commands: serve, health, send.
"""

from typing import Optional

import typer

from wagateway.cli._http import _http_get, _http_post
from wagateway.config import DEFAULT_SESSION_ID


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from wagateway.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING")


def register_commands(app: typer.Typer):
    """Register top-level commands onto the app."""

    @app.command()
    def serve(
        port: Optional[int] = typer.Option(None, "--port", "-p", help="Listening port"),
        host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
        debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level"),
    ):
        """Run the gateway server."""
        from wagateway.config import load_config
        from wagateway.server import run

        config = load_config()
        if port:
            config.port = port
        if host:
            config.host = host

        typer.echo(f"🚀 Starting gateway on {config.host}:{config.port}...")
        run(config, debug=debug)

    @app.command()
    def health():
        """Check that the gateway is up."""
        data = _http_get("/health")
        counts = data.get("sessions", {})
        summary = ", ".join(f"{k}: {v}" for k, v in counts.items() if v)
        typer.echo(f"💚 {data['status']} (default session: {data['whatsapp']})")
        typer.echo(f"   Sessions: {summary or 'none'}")

    @app.command()
    def send(
        to: str = typer.Argument(..., help="Recipient JID"),
        message: str = typer.Argument(..., help="Text to send"),
        session: str = typer.Option(
            DEFAULT_SESSION_ID, "--session", "-s", help="Session id"
        ),
    ):
        """Send a text message through a session."""
        data = _http_post(
            "/api/messages/send", {"sessionId": session, "to": to, "message": message}
        )
        typer.echo(f"✅ Sent (id: {data['messageId']})")
