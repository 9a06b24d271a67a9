import logging

from balloon.log import LOGGER_NAME, setup_logging


def test_setup_logging_writes_to_file(tmp_path, restore_logger):
    log_file = tmp_path / "runs" / "simulation.log"

    logger = setup_logging("DEBUG", str(log_file))
    logging.getLogger("balloon.solver").info("hello from the solver")
    for handler in logger.handlers:
        handler.flush()

    assert logger.name == LOGGER_NAME
    assert logger.propagate is False
    assert "hello from the solver" in log_file.read_text()


def test_setup_logging_twice_does_not_duplicate_handlers(restore_logger):
    setup_logging(logging.INFO)
    logger = setup_logging(logging.WARNING)

    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
