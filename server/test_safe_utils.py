"""
Tests for safe_utils.

safe_call guards the best-effort edges of the server: socket emits, env-var
parsing and config writes. A failure must never escape, must be logged once
per (function, exception type), and must surface when DEBUG_RAISE_EXCEPTIONS
is set.
"""

import pytest
from unittest.mock import Mock, patch
from safe_utils import safe_call, safe_call_with_default, reset_seen_exceptions


def _dead_socket(payload):
    raise ConnectionError("socket closed")


def _bad_state_file():
    raise PermissionError("read-only file system")


def test_result_passes_through():
    emit = Mock(return_value="sent")
    assert safe_call(emit, {'type': 'system', 'content': 'hi'}) == "sent"
    emit.assert_called_once_with({'type': 'system', 'content': 'hi'})


def test_keyword_arguments_are_forwarded():
    def join(*parts, sep=" "):
        return sep.join(parts)

    assert safe_call(join, "give", "@a", sep="|") == "give|@a"


def test_failed_emit_returns_none():
    assert safe_call(_dead_socket, {'type': 'error', 'content': 'x'}) is None


def test_env_port_parsing_falls_back():
    assert safe_call_with_default(int, 5000, "not-a-port") == 5000
    assert safe_call_with_default(int, 5000, "8080") == 8080


def test_failed_write_returns_default():
    assert safe_call_with_default(_bad_state_file, False) is False


def test_each_failure_kind_logged_once():
    with patch('safe_utils.logger') as mock_logger:
        for _ in range(3):
            safe_call(_dead_socket, {})
        assert mock_logger.warning.call_count == 1

        safe_call(_bad_state_file)
        assert mock_logger.warning.call_count == 2


def test_log_line_names_function_and_error():
    with patch('safe_utils.logger') as mock_logger:
        safe_call(_bad_state_file)
        line = mock_logger.warning.call_args.args[0]
    assert "_bad_state_file" in line
    assert "PermissionError" in line
    assert "read-only file system" in line


def test_reset_allows_logging_again():
    with patch('safe_utils.logger') as mock_logger:
        safe_call(_dead_socket, {})
        safe_call(_dead_socket, {})
        reset_seen_exceptions()
        safe_call(_dead_socket, {})
        assert mock_logger.warning.call_count == 2


def test_debug_raise_surfaces_errors(monkeypatch):
    monkeypatch.setenv('DEBUG_RAISE_EXCEPTIONS', 'true')
    with pytest.raises(ConnectionError):
        safe_call(_dead_socket, {})
    with pytest.raises(PermissionError):
        safe_call_with_default(_bad_state_file, False)


def test_bound_methods_and_lambdas():
    class DeadSender:
        def send(self, payload):
            raise ConnectionError("gone")

    assert safe_call(lambda: 1 / 0) is None
    assert safe_call(DeadSender().send, {'type': 'system', 'content': 'hi'}) is None
