import pytest

from hyperlane.config import ServerConfig
from hyperlane.errors import DuplicatePatternError, EmptyPatternError
from hyperlane.handler import print_error_handle


def test_defaults():
    config = ServerConfig()
    assert config.error_handle is print_error_handle
    assert config.linger is None
    assert config.ttl is None
    assert config.websocket_buffer_size == config.http_line_buffer_size
    assert config.contains_disable_inner_http_handle("/") is False


def test_disable_http_route():
    config = ServerConfig()
    assert config.disable_inner_http_handle("/api") is True
    assert config.contains_disable_inner_http_handle("/api") is True
    assert config.contains_disable_inner_http_handle("/other") is False


def test_disable_http_dynamic_route_matches_paths():
    config = ServerConfig()
    config.disable_inner_http_handle("/ws/:id")
    assert config.contains_disable_inner_http_handle("/ws/17") is True
    assert config.contains_disable_inner_http_handle("/ws/17/x") is False


def test_enable_http_route():
    config = ServerConfig()
    config.disable_inner_http_handle("/api")
    assert config.enable_inner_http_handle("/api") is True
    assert config.enable_inner_http_handle("/api") is False
    assert "/api" not in config.disabled_http_routes
    # The pattern stays registered with the matcher.
    assert config.contains_disable_inner_http_handle("/api") is True


def test_enable_unknown_route_returns_false():
    config = ServerConfig()
    assert config.enable_inner_http_handle("/nope") is False
    assert config.enable_inner_websocket_handle("/nope") is False


def test_disable_http_empty_route_raises():
    with pytest.raises(EmptyPatternError, match="Route pattern cannot be empty"):
        ServerConfig().disable_inner_http_handle("")


def test_disable_http_duplicate_route_raises():
    config = ServerConfig()
    config.disable_inner_http_handle("/")
    with pytest.raises(DuplicatePatternError, match="Route pattern already exists: /"):
        config.disable_inner_http_handle("/")


def test_disable_websocket_empty_route_raises():
    with pytest.raises(EmptyPatternError, match="Route pattern cannot be empty"):
        ServerConfig().disable_inner_websocket_handle("")


def test_disable_websocket_duplicate_route_raises():
    config = ServerConfig()
    config.disable_inner_websocket_handle("/")
    with pytest.raises(DuplicatePatternError, match="Route pattern already exists: /"):
        config.disable_inner_websocket_handle("/")


def test_websocket_route_round_trip():
    config = ServerConfig()
    assert config.disable_inner_websocket_handle("/chat") is True
    assert "/chat" in config.disabled_websocket_routes
    assert config.contains_disable_inner_websocket_handle("/chat") is True
    assert config.enable_inner_websocket_handle("/chat") is True
    assert "/chat" not in config.disabled_websocket_routes


def test_http_and_websocket_share_matcher():
    config = ServerConfig()
    config.disable_inner_http_handle("/")
    assert config.contains_disable_inner_websocket_handle("/") is True
    with pytest.raises(DuplicatePatternError):
        config.disable_inner_websocket_handle("/")