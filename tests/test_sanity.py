# Sesame RDF Client
# File: tests/test_sanity.py
# Version: v2

"""Basic sanity tests for the package scaffolding."""

import rdf_sesame
from rdf_sesame.config import SesameConfig


def test_config_from_env_minimal() -> None:
    config = SesameConfig.from_env()
    assert config is not None
    assert config.base_url.startswith("http")


def test_public_api_exports() -> None:
    for name in rdf_sesame.__all__:
        assert hasattr(rdf_sesame, name), name
    assert isinstance(rdf_sesame.__version__, str)


def test_connect_without_login_does_not_touch_network() -> None:
    # No username means no login request, so constructing is offline.
    conn = rdf_sesame.connect("example.invalid")
    try:
        assert conn.config.base_url == "http://example.invalid:80/sesame"
    finally:
        conn.disconnect()
