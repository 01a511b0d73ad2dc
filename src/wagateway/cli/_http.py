"""
Shared HTTP helpers for CLI commands that talk to the running gateway.
"""

import os

import httpx
import typer

from wagateway.config import DEFAULT_PORT


def get_server_url() -> str:
    """Get the gateway URL from the environment or default."""
    explicit = os.getenv("WAGATEWAY_URL")
    if explicit:
        return explicit.rstrip("/")

    port = os.getenv("PORT") or str(DEFAULT_PORT)
    host = os.getenv("WAGATEWAY_HOST", "localhost")
    return f"http://{host}:{port}"


def _fail(message: str) -> None:
    typer.echo(f"❌ {message}")
    raise typer.Exit(code=1)


def _error_detail(e: httpx.HTTPStatusError) -> str:
    try:
        return e.response.json().get("error", str(e))
    except Exception:
        return f"HTTP {e.response.status_code}"


def _request(method: str, path: str, data: dict = None, timeout: float = 10.0) -> dict:
    url = f"{get_server_url()}{path}"
    try:
        resp = httpx.request(method, url, json=data, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except httpx.ConnectError:
        _fail("Cannot connect to the gateway. Is it running?")
    except httpx.HTTPStatusError as e:
        _fail(f"Server error: {_error_detail(e)}")
    except httpx.HTTPError as e:
        _fail(f"Error: {e}")


def _http_get(path: str) -> dict:
    """Make a GET request to the running gateway."""
    return _request("GET", path)


def _http_post(path: str, data: dict = None) -> dict:
    """Make a POST request to the running gateway."""
    return _request("POST", path, data=data or {}, timeout=30.0)


def _http_delete(path: str) -> dict:
    """Make a DELETE request to the running gateway."""
    return _request("DELETE", path)
