import logging
import logging.handlers

import pytest

from financeflow.logging_config import setup_logging, get_logger, APP_LOGGER_NAME, REQUEST_LOGGER_NAME


@pytest.fixture
def restore_logging():
    yield
    setup_logging()


def test_setup_logging_adds_rotating_file_handler(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "financeflow.log"

    app_logger = setup_logging(app_log_level="debug", log_file=str(log_file))

    assert app_logger.name == APP_LOGGER_NAME
    assert app_logger.level == logging.DEBUG
    assert app_logger.propagate is False
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in app_logger.handlers)

    get_logger("financeflow.services.pending").info("sweep done")
    for handler in app_logger.handlers:
        handler.flush()
    assert "financeflow.services.pending - INFO - sweep done" in log_file.read_text()


def test_setup_logging_replaces_handlers(restore_logging):
    setup_logging()
    app_logger = setup_logging()

    assert len(app_logger.handlers) == 1


def test_get_logger_nests_under_the_app_logger():
    assert get_logger("financeflow.crud.crud_transfer").name == "financeflow.crud.crud_transfer"
    assert get_logger("scripts.seed").name == "financeflow.scripts.seed"
    assert get_logger().name == APP_LOGGER_NAME


def test_requests_are_logged(client):
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record.getMessage())

    handler = ListHandler()
    request_logger = logging.getLogger(REQUEST_LOGGER_NAME)
    request_logger.addHandler(handler)
    try:
        client.get("/health")
    finally:
        request_logger.removeHandler(handler)

    assert any(message.startswith("GET /health -> 200") for message in records)
