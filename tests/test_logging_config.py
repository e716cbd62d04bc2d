import io
import logging

from delve.logging_config import HANDLER_NAME, configure_logging, resolve_level


def test_resolve_level_accepts_names_and_numbers():
    assert resolve_level("debug", logging.WARNING) == logging.DEBUG
    assert resolve_level(" Info ", logging.WARNING) == logging.INFO
    assert resolve_level("15", logging.WARNING) == 15
    assert resolve_level("chatty", logging.WARNING) == logging.WARNING
    assert resolve_level(None, logging.ERROR) == logging.ERROR


def test_package_logger_configured_without_touching_root(monkeypatch):
    monkeypatch.delenv("DELVE_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    root_handlers, root_level = list(root.handlers), root.level
    buf = io.StringIO()

    logger = configure_logging(logging.INFO, stream=buf)
    logging.getLogger("delve.session.state").info("room ready")
    logging.getLogger("delve.session.state").debug("hidden detail")

    assert logger.name == "delve"
    assert "delve.session.state: room ready" in buf.getvalue()
    assert "hidden detail" not in buf.getvalue()
    assert root.handlers == root_handlers
    assert root.level == root_level


def test_env_level_used_when_no_explicit_level(monkeypatch):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "error")
    assert configure_logging(stream=io.StringIO()).level == logging.ERROR
    # An explicit level (the CLI's --debug) wins over the environment
    assert configure_logging(logging.DEBUG).level == logging.DEBUG


def test_repeated_calls_reuse_one_handler(monkeypatch):
    monkeypatch.delenv("DELVE_LOG_LEVEL", raising=False)
    first, second = io.StringIO(), io.StringIO()
    configure_logging(stream=first)
    logger = configure_logging(logging.INFO, stream=second)
    named = [h for h in logger.handlers if h.get_name() == HANDLER_NAME]
    assert len(named) == 1

    logging.getLogger("delve.turns").info("round 2")
    assert first.getvalue() == ""
    assert "round 2" in second.getvalue()
