"""Unit tests for the structlog setup."""

import io
import json
from unittest.mock import patch

import structlog

from scan_reader.logging import configure_logging, document_context


def _capture(json_output):
    err, out = io.StringIO(), io.StringIO()
    try:
        with patch("sys.stderr", err), patch("sys.stdout", out):
            configure_logging(json_output=json_output)
            with document_context("abcdef0123456789"):
                structlog.get_logger().info("cli.check", pages=3)
    finally:
        configure_logging()
    return err.getvalue(), out.getvalue()


def test_log_lines_go_to_stderr():
    err, out = _capture(json_output=True)
    assert out == ""
    line = json.loads(err.strip().splitlines()[-1])
    assert line["event"] == "cli.check"
    assert line["pages"] == 3
    assert line["document_id"] == "abcdef012345"


def test_console_format_also_on_stderr():
    err, out = _capture(json_output=False)
    assert out == ""
    assert "cli.check" in err
