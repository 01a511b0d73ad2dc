"""
wagateway CLI.

This package splits CLI commands into focused modules:
- main:     serve, health, send
- sessions: list, create, status, qr, pair, delete
- webhook:  register, show
"""

import typer

from wagateway.cli.main import configure_logging, register_commands
from wagateway.cli.sessions import sessions_app
from wagateway.cli.webhook import webhook_app

app = typer.Typer(help="wagateway - messaging session gateway with signed webhooks")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    wagateway - messaging session gateway with signed webhooks.
    """
    configure_logging(verbose)


register_commands(app)

app.add_typer(sessions_app, name="sessions")
app.add_typer(webhook_app, name="webhook")

if __name__ == "__main__":
    app()
