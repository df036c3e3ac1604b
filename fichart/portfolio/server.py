"""Command that serves the portfolio API over HTTP."""
from __future__ import annotations

import argparse
import logging
import os
import signal
import threading

from werkzeug.serving import make_server

from fichart.portfolio.api import PortfolioApp
from fichart.portfolio.repository import MemoryPortfolioRepository

DEFAULT_PORT = "8080"
REQUEST_TIMEOUT_SECONDS = 60.0
SHUTDOWN_GRACE_SECONDS = 30.0
TIMEOUT_MESSAGE = "request timed out"

_log = logging.getLogger(__name__)


def _with_logging(app):
    def wrapped(environ, start_response):
        url = environ.get("PATH_INFO", "")
        if environ.get("QUERY_STRING"):
            url += "?" + environ["QUERY_STRING"]
        _log.info("%s %s %s", environ.get("REMOTE_ADDR", ""), environ.get("REQUEST_METHOD", ""), url)
        return app(environ, start_response)

    return wrapped


def _with_recovery(app):
    def wrapped(environ, start_response):
        try:
            return list(app(environ, start_response))
        except Exception as exc:  # noqa: BLE001 - answer 500 instead of dropping the request
            _log.error("panic while serving request: %s", exc)
            start_response(
                "500 Internal Server Error",
                [
                    ("Content-Type", "text/plain; charset=utf-8"),
                    ("X-Content-Type-Options", "nosniff"),
                ],
            )
            return [b"Internal Server Error\n"]

    return wrapped


def _with_timeout(app, seconds: float, message: str):
    """Answer 503 with the message when the inner app does not finish in time."""

    def wrapped(environ, start_response):
        outcome: dict = {}

        def run() -> None:
            chunks: list[bytes] = []
            captured: dict = {}

            def capture(status, headers, exc_info=None):
                captured["status"] = status
                captured["headers"] = headers
                return chunks.append

            try:
                body = app(environ, capture)
                try:
                    chunks.extend(body)
                finally:
                    close = getattr(body, "close", None)
                    if close is not None:
                        close()
                outcome["response"] = (captured["status"], captured["headers"], b"".join(chunks))
            except BaseException as exc:  # noqa: BLE001 - re-raised in the caller
                outcome["error"] = exc

        worker = threading.Thread(target=run, daemon=True)
        worker.start()
        worker.join(seconds)
        if worker.is_alive():
            start_response(
                "503 Service Unavailable", [("Content-Type", "text/plain; charset=utf-8")]
            )
            return [message.encode("utf-8")]
        if "error" in outcome:
            raise outcome["error"]
        status, headers, body = outcome["response"]
        start_response(status, headers)
        return [body]

    return wrapped


def create_app(repository):
    """The portfolio API with request logging, panic recovery and a request timeout."""
    app = PortfolioApp(repository, _log)
    app = _with_timeout(app, REQUEST_TIMEOUT_SECONDS, TIMEOUT_MESSAGE)
    app = _with_recovery(app)
    return _with_logging(app)


def main(argv=None) -> int:
    """Serve the portfolio API until SIGINT or SIGTERM arrives."""
    parser = argparse.ArgumentParser(description="Serve the portfolio API over HTTP.")
    parser.add_argument(
        "--port",
        type=int,
        default=os.environ.get("PORT") or DEFAULT_PORT,
        help="port to listen on (default: $PORT or 8080)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        server = make_server("", args.port, create_app(MemoryPortfolioRepository()), threaded=True)
    except OSError as exc:
        _log.error("server error: %s", exc)
        return 1

    stop = threading.Event()
    for signal_name in ("SIGINT", "SIGTERM"):
        signum = getattr(signal, signal_name, None)
        if signum is not None:
            signal.signal(signum, lambda *_: stop.set())

    serving = threading.Thread(target=server.serve_forever, daemon=True)
    serving.start()
    _log.info("starting server on :%s", args.port)

    while not stop.wait(0.5):
        pass

    closer = threading.Thread(target=server.shutdown, daemon=True)
    closer.start()
    closer.join(SHUTDOWN_GRACE_SECONDS)
    if closer.is_alive():
        _log.error("error while shutting down the server: timed out")
        return 1
    serving.join()
    server.server_close()
    return 0