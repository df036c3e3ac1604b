"""HTTP server exposing the metrics registry on /metrics."""
from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
import time

from werkzeug.exceptions import HTTPException, InternalServerError
from werkzeug.routing import Map, Rule
from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response

from fichart.monitoring.exporter import Registry

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"
DEFAULT_PORT = "8083"
SHUTDOWN_GRACE_SECONDS = 30.0

_log = logging.getLogger(__name__)


def create_app(registry: Registry):
    """A WSGI application serving the registry in the text format."""
    url_map = Map([Rule("/metrics", endpoint="metrics", methods=["GET"])])

    def app(environ, start_response):
        request = Request(environ)
        started = time.monotonic()
        try:
            url_map.bind_to_environ(environ).match()
            response = Response(registry.render(), content_type=CONTENT_TYPE)
        except HTTPException as exc:
            response = exc.get_response(environ)
        except Exception:  # noqa: BLE001 - answer with 500 instead of dropping the connection
            _log.exception("error while serving %s", request.path)
            response = InternalServerError().get_response(environ)
        _log.info(
            '"%s %s" %d in %.3fms',
            request.method,
            request.path,
            response.status_code,
            (time.monotonic() - started) * 1000,
        )
        return response(environ, start_response)

    return app


def main(argv=None) -> int:
    """Serve metrics until a termination signal arrives."""
    parser = argparse.ArgumentParser(description="Serve monitoring metrics over HTTP.")
    parser.add_argument(
        "--port",
        type=int,
        default=os.environ.get("PORT") or DEFAULT_PORT,
        help="port to listen on (default: $PORT or 8083)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    server = make_server("", args.port, create_app(Registry()), threaded=True)
    stop = threading.Event()
    for signal_name in ("SIGHUP", "SIGINT", "SIGTERM", "SIGQUIT"):
        signum = getattr(signal, signal_name, None)
        if signum is not None:
            signal.signal(signum, lambda *_: stop.set())

    serving = threading.Thread(target=server.serve_forever, daemon=True)
    serving.start()
    _log.info("monitoring service started (port: %s)", args.port)

    while not stop.wait(0.5):
        pass

    closer = threading.Thread(target=server.shutdown, daemon=True)
    closer.start()
    closer.join(SHUTDOWN_GRACE_SECONDS)
    if closer.is_alive():
        _log.error("graceful shutdown timed out.. forcing exit.")
        return 1
    serving.join()
    server.server_close()
    return 0