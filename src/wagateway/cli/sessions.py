"""
CLI subcommands for managing sessions.

Usage:
    wagateway sessions list
    wagateway sessions create [SESSION_ID]
    wagateway sessions status SESSION_ID
    wagateway sessions qr SESSION_ID
    wagateway sessions pair SESSION_ID PHONE_NUMBER
    wagateway sessions delete SESSION_ID [--yes]
"""

from typing import Optional

import typer

from wagateway.cli._http import _http_delete, _http_get, _http_post

sessions_app = typer.Typer(help="Manage gateway sessions")

STATUS_ICONS = {
    "connected": "🟢",
    "connecting": "🟡",
    "initializing": "⚪",
    "disconnected": "🔴",
}


def _icon(status: str) -> str:
    return STATUS_ICONS.get(status, "⚪")


@sessions_app.command("list")
def sessions_list():
    """List all sessions."""
    data = _http_get("/api/sessions")
    sessions = data.get("sessions", [])

    if not sessions:
        typer.echo("No sessions.")
        return

    typer.echo(f"📱 Sessions ({len(sessions)}):\n")
    for session in sessions:
        qr = " (QR pending)" if session.get("hasQR") else ""
        typer.echo(
            f"  {_icon(session['status'])} {session['sessionId']}: "
            f"{session['status']}{qr}"
        )


@sessions_app.command("create")
def sessions_create(
    session_id: Optional[str] = typer.Argument(
        None, help="Session id (generated when omitted)"
    ),
):
    """Create a session and start connecting it."""
    payload = {"sessionId": session_id} if session_id else {}
    data = _http_post("/api/sessions/create", payload)
    typer.echo(f"✅ Created session {data['sessionId']} ({data['status']})")


@sessions_app.command("status")
def sessions_status(session_id: str = typer.Argument(..., help="Session id")):
    """Show one session's connection state."""
    data = _http_get(f"/api/sessions/{session_id}/status")
    typer.echo(f"{_icon(data['status'])} {data['sessionId']}: {data['status']}")
    if data.get("user"):
        typer.echo(f"   User: {data['user'].get('id')}")
    if data.get("hasQR"):
        typer.echo("   Waiting for QR scan")
    typer.echo(f"   Created: {data['createdAt']}")


@sessions_app.command("qr")
def sessions_qr(session_id: str = typer.Argument(..., help="Session id")):
    """Print the current QR reference."""
    data = _http_get(f"/api/sessions/{session_id}/qr")
    typer.echo(data["qr"])


@sessions_app.command("pair")
def sessions_pair(
    session_id: str = typer.Argument(..., help="Session id"),
    phone_number: str = typer.Argument(..., help="Phone number with country code"),
):
    """Request a pairing code instead of scanning a QR."""
    data = _http_post(
        f"/api/sessions/{session_id}/pairing-code", {"phoneNumber": phone_number}
    )
    typer.echo(f"🔑 Pairing code: {data['code']}")


@sessions_app.command("delete")
def sessions_delete(
    session_id: str = typer.Argument(..., help="Session id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Log a session out and remove it."""
    if not yes and not typer.confirm(f"Log out and delete session '{session_id}'?"):
        typer.echo("Aborted.")
        raise typer.Exit(code=1)

    _http_delete(f"/api/sessions/{session_id}")
    typer.echo(f"🗑️  Deleted session {session_id}")
