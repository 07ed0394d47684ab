import socket
import urllib.error
import urllib.request

import pytest

from rtexporter import metrics_server as ms


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_default_config():
    conf = ms.new_default_config()
    assert conf.port == 2112
    assert conf.ip == "0.0.0.0"
    assert conf.tls == ms.new_default_tls_config()
    conf.validate()
    assert conf.bind_address() == f"{conf.ip}:{conf.port}"


@pytest.mark.parametrize("port", [0, -1])
def test_validate_rejects_bad_port(port):
    with pytest.raises(ValueError):
        ms.Config("127.0.0.1", port, ms.TLSConfig()).validate()


def test_tls_clone_keeps_paths():
    tls = ms.TLSConfig("dir", "c.crt", "k.key", want_cli_auth=True)
    clone = tls.clone()
    assert (clone.certs_dir, clone.cert_file, clone.key_file) == ("dir", "c.crt", "k.key")
    assert clone is not tls


@pytest.mark.parametrize("mode", ["disabled", "HTTP", "HttpTLS"])
def test_serving_mode_supported(mode):
    assert ms.serving_mode_is_supported(mode) == mode.lower()


def test_serving_mode_unsupported():
    with pytest.raises(ValueError):
        ms.serving_mode_is_supported("foo")


def test_serving_mode_list():
    assert ms.serving_mode_supported().split(",") == ["disabled", "http", "httptls"]


def test_port_from_env(monkeypatch):
    monkeypatch.delenv("METRICS_PORT", raising=False)
    assert ms.port_from_env() == 0
    monkeypatch.setenv("METRICS_PORT", "9100")
    assert ms.port_from_env() == 9100
    monkeypatch.setenv("METRICS_PORT", "nope")
    assert ms.port_from_env() == 0


def test_address_from_env(monkeypatch):
    monkeypatch.delenv("METRICS_ADDRESS", raising=False)
    assert ms.address_from_env() == ""
    monkeypatch.setenv("METRICS_ADDRESS", "127.0.0.1")
    assert ms.address_from_env() == "127.0.0.1"


def test_setup_disabled_skips_validation():
    assert ms.setup("disabled", ms.Config("127.0.0.1", 0)) is None


def test_setup_unknown_mode():
    with pytest.raises(ValueError):
        ms.setup("bogus", ms.new_default_config())


def test_setup_invalid_port():
    with pytest.raises(ValueError):
        ms.setup("http", ms.Config("127.0.0.1", -1))


def test_setup_serves_metrics():
    port = _free_port()
    server = ms.setup("http", ms.Config("127.0.0.1", port, ms.TLSConfig()))
    try:
        with urllib.request.urlopen(f"http://127.0.0.1:{port}/metrics", timeout=5) as resp:
            body = resp.read().decode()
            assert resp.status == 200
        assert "# TYPE rte_noderesourcetopology_writes_total counter" in body
        with pytest.raises(urllib.error.HTTPError) as excinfo:
            urllib.request.urlopen(f"http://127.0.0.1:{port}/other", timeout=5)
        assert excinfo.value.code == 404
    finally:
        server.shutdown()
        server.server_close()


def test_setup_tls_missing_certs(tmp_path):
    tls = ms.TLSConfig(str(tmp_path), "missing.crt", "missing.key")
    with pytest.raises(RuntimeError):
        ms.setup("httptls", ms.Config("127.0.0.1", _free_port(), tls))