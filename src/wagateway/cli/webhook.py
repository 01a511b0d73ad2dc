"""
CLI subcommands for the webhook destination.
"""

from typing import Optional

import typer

from wagateway.cli._http import _http_get, _http_post

webhook_app = typer.Typer(help="Configure webhook delivery")


@webhook_app.command("register")
def webhook_register(
    url: str = typer.Argument(..., help="Endpoint receiving the POSTs"),
    secret: Optional[str] = typer.Option(
        None, "--secret", "-s", help="Shared secret for x-webhook-signature"
    ),
):
    """Set the webhook URL and signing secret."""
    payload = {"url": url}
    if secret:
        payload["secret"] = secret
    data = _http_post("/api/webhook/register", payload)
    signed = "signed" if data.get("hasSecret") else "unsigned"
    typer.echo(f"✅ Webhook set to {data['url']} ({signed})")


@webhook_app.command("show")
def webhook_show():
    """Show the current webhook destination."""
    data = _http_get("/api/webhook")
    if not data.get("url"):
        typer.echo("No webhook configured.")
        return
    signed = "signed" if data.get("hasSecret") else "unsigned"
    typer.echo(f"🔗 {data['url']} ({signed})")
