"""Configuration and startup of the HTTP(S) endpoint exposing the metrics."""

from __future__ import annotations

import logging
import os
import re
import socket
import ssl
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from rtexporter.metrics import render_exposition

log = logging.getLogger(__name__)

PORT_DEFAULT = 2112
ADDRESS_DEFAULT = "0.0.0.0"

TLS_ROOT_DIR = "/etc/secrets/rte"
TLS_CERT = "tls.crt"
TLS_KEY = "tls.key"

SERVING_DISABLED = "disabled"
SERVING_HTTP = "http"
SERVING_HTTP_TLS = "httptls"
SERVING_DEFAULT = SERVING_DISABLED

_SUPPORTED_MODES = (SERVING_DISABLED, SERVING_HTTP, SERVING_HTTP_TLS)


@dataclass
class TLSConfig:
    certs_dir: str = ""
    cert_file: str = ""
    key_file: str = ""
    want_cli_auth: bool = False

    def clone(self) -> "TLSConfig":
        """Copy of the certificate locations; client authentication is not carried over."""
        return TLSConfig(certs_dir=self.certs_dir, cert_file=self.cert_file, key_file=self.key_file)


def new_default_tls_config() -> TLSConfig:
    return TLSConfig(certs_dir=TLS_ROOT_DIR, cert_file=TLS_CERT, key_file=TLS_KEY)


@dataclass
class Config:
    ip: str = ""
    port: int = 0
    tls: TLSConfig = field(default_factory=TLSConfig)

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot be served."""
        if self.port <= 0:
            raise ValueError(f"invalid port: {self.port}")

    def bind_address(self) -> str:
        return f"{self.ip}:{self.port}"


def new_default_config() -> Config:
    return Config(ADDRESS_DEFAULT, PORT_DEFAULT, new_default_tls_config())


def serving_mode_is_supported(value: str) -> str:
    """Return the normalised serving mode, or raise ValueError if unknown."""
    val = value.lower()
    if val not in _SUPPORTED_MODES:
        raise ValueError(f"unsupported method  {value!r}")
    return val


def serving_mode_supported() -> str:
    return ",".join(_SUPPORTED_MODES)


def port_from_env() -> int:
    """Port from $METRICS_PORT, or 0 if unset or not an integer."""
    value = os.environ.get("METRICS_PORT")
    if value is None:
        return 0
    if not re.fullmatch(r"[+-]?[0-9]+", value):
        log.warning("the env variable METRICS_PORT has inccorrect value %r", value)
        return 0
    return int(value)


def address_from_env() -> str:
    return os.environ.get("METRICS_ADDRESS", "")


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:  # noqa: N802
        if self.path.split("?", 1)[0] != "/metrics":
            self.send_error(404)
            return
        body = render_exposition().encode()
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; version=0.0.4; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:
        log.debug("metrics server: " + format, *args)


class _Server(ThreadingHTTPServer):
    daemon_threads = True


def _tls_context(tls: TLSConfig) -> ssl.SSLContext:
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.load_cert_chain(
        os.path.join(tls.certs_dir, tls.cert_file), os.path.join(tls.certs_dir, tls.key_file)
    )
    if tls.want_cli_auth:
        ctx.verify_mode = ssl.CERT_REQUIRED
        ctx.load_default_certs(ssl.Purpose.CLIENT_AUTH)
        log.info("metrics server configuration: client authentication enabled")
    else:
        ctx.verify_mode = ssl.CERT_NONE
        log.info("metrics server configuration: client authentication disabled")
    return ctx


def setup(mode: str, conf: Config) -> Optional[ThreadingHTTPServer]:
    """Start serving metrics in the background; return the server, or None if disabled."""
    if mode == SERVING_DISABLED:
        log.info("metrics endpoint disabled")
        return None

    conf.validate()

    if mode == SERVING_HTTP:
        secure = False
    elif mode == SERVING_HTTP_TLS:
        secure = True
    else:
        raise ValueError(f"unknown mode: {mode}")

    server_cls = _Server
    if ":" in conf.ip:
        server_cls = type("_Server6", (_Server,), {"address_family": socket.AF_INET6})
    try:
        server = server_cls((conf.ip, conf.port), _Handler)
    except OSError as err:
        raise RuntimeError(f"failed to build server with port {conf.port}: {err}") from err
    if secure:
        try:
            server.socket = _tls_context(conf.tls).wrap_socket(server.socket, server_side=True)
        except (OSError, ssl.SSLError) as err:
            server.server_close()
            raise RuntimeError(f"failed to build server with port {conf.port}: {err}") from err

    threading.Thread(target=server.serve_forever, name="metrics-server", daemon=True).start()
    return server