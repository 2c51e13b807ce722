import logging

from receipt_analytics import log


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("RECEIPT_ANALYTICS_LOG_LEVEL", "debug")

    logger = log.get_logger("receipt_analytics.test")

    assert logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("RECEIPT_ANALYTICS_LOG_LEVEL", "chatty")

    assert log.get_logger("receipt_analytics.test").level == logging.INFO


def test_single_root_handler(monkeypatch):
    monkeypatch.setattr(log, "_HANDLER_ATTACHED", False)
    root = logging.getLogger()
    before = list(root.handlers)

    log.get_logger("a")
    log.get_logger("b")

    added = [h for h in root.handlers if h not in before]
    assert len(added) == 1
    root.removeHandler(added[0])
