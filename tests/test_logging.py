from __future__ import annotations

import logging

import academy_app


def test_configure_logging_installs_a_single_handler():
    logger = academy_app.configure_logging("DEBUG")
    academy_app.configure_logging("INFO")

    stream_handlers = [handler for handler in logger.handlers if isinstance(handler, logging.StreamHandler)]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].formatter._fmt == academy_app.LOG_FORMAT
    assert logger.level == logging.INFO
