"""Open the Secret Santa organizer, or a result somebody shared, in a desktop window.

The launcher can start the API itself (``--start-server``) or attach to one
that is already running. A share link received from someone else can be
passed whole with ``--link``; only its ``r`` parameter is used, so the
result is always shown through the local server.
"""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
import time
import webbrowser
from pathlib import Path
from urllib import error, request
from urllib.parse import parse_qs, urlsplit

from secretsanta.backend.codec import SHARE_QUERY_PARAM, build_share_url, try_decode_share_token
from secretsanta.backend.logging_config import setup_logging

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SERVER = "http://127.0.0.1:8000"
VIEW_PATH = "/api/view"

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="secretsanta-launcher", description="Secret Santa launcher")
    parser.add_argument("--server", default=DEFAULT_SERVER, help="base URL of the Secret Santa API")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--token", default="", help="share token to open instead of the organizer form")
    source.add_argument("--link", default="", help="full share link; its r parameter is opened locally")
    parser.add_argument("--start-server", action="store_true", help="run uvicorn for the lifetime of the window")
    parser.add_argument("--log-level", default=os.getenv("SECRETSANTA_LOG_LEVEL", "INFO"))
    return parser.parse_args(argv)


def token_from_link(link: str) -> str:
    values = parse_qs(urlsplit(link).query).get(SHARE_QUERY_PARAM, [])
    return values[0] if values else ""


def wait_for_server(server_url: str, timeout_s: float = 8.0) -> bool:
    deadline = time.monotonic() + timeout_s
    ready_url = f"{server_url.rstrip('/')}{VIEW_PATH}"
    while time.monotonic() < deadline:
        try:
            with request.urlopen(ready_url, timeout=0.5) as response:
                if response.status == 200:
                    return True
        except (error.URLError, TimeoutError):
            logger.debug("Waiting for %s", ready_url)
        time.sleep(0.2)
    return False


def server_command(server_url: str, log_level: str = "INFO") -> list[str]:
    parts = urlsplit(server_url)
    host = parts.hostname or "127.0.0.1"
    port = parts.port or (443 if parts.scheme == "https" else 80)
    return [
        sys.executable,
        "-m",
        "uvicorn",
        "secretsanta.backend.api:app",
        "--host",
        host,
        "--port",
        str(port),
        "--log-level",
        log_level.lower(),
    ]


def maybe_start_server(server_url: str, log_level: str = "INFO") -> subprocess.Popen[str] | None:
    env = dict(os.environ, SECRETSANTA_LOG_LEVEL=log_level.upper())
    # links produced by this server must point back at its own view route
    env.setdefault("SECRETSANTA_PUBLIC_URL", f"{server_url.rstrip('/')}{VIEW_PATH}")
    process = subprocess.Popen(server_command(server_url, log_level), cwd=str(PROJECT_ROOT), env=env)
    if wait_for_server(server_url):
        logger.info("Secret Santa server running at %s (pid %s)", server_url, process.pid)
        return process
    process.terminate()
    return None


def build_view_url(server: str, token: str = "") -> str:
    view_url = f"{server.rstrip('/')}{VIEW_PATH}"
    if token:
        return build_share_url(view_url, token, param=SHARE_QUERY_PARAM)
    return view_url


def window_title(token: str) -> str:
    incoming = try_decode_share_token(token)
    if incoming is None:
        return "Secret Santa"
    return f"Secret Santa - {incoming.record.title or 'Shared result'}"


def open_view(url: str, title: str) -> None:
    try:
        import webview

        webview.create_window(title, url=url, width=720, height=820)
        webview.start()
    except Exception:
        logger.info("Desktop window unavailable, opening %s in the browser", url)
        webbrowser.open(url)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    token = args.token or token_from_link(args.link)
    if token and try_decode_share_token(token) is None:
        logger.warning("Share token is not readable, opening the organizer form instead")
        token = ""

    server_process: subprocess.Popen[str] | None = None
    if args.start_server:
        server_process = maybe_start_server(args.server, args.log_level)
        if server_process is None:
            logger.error("Could not start the Secret Santa server at %s", args.server)
            return 1
    elif not wait_for_server(args.server):
        logger.error("Server not reachable at %s. Use --start-server or run uvicorn manually.", args.server)
        return 1

    try:
        open_view(url=build_view_url(args.server, token), title=window_title(token))
    finally:
        if server_process is not None:
            server_process.terminate()
            server_process.wait(timeout=5)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
