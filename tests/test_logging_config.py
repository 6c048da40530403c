import logging
import logging.handlers

from fintrack.logging_config import get_logger, setup_logging


class TestLoggingSetup:
    """Tests for the application logger configuration"""

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "fintrack.log"

        setup_logging(app_log_level="DEBUG", log_file=str(log_file))
        app_logger = setup_logging(app_log_level="DEBUG", log_file=str(log_file))

        assert app_logger.name == "fintrack"
        assert app_logger.level == logging.DEBUG
        assert app_logger.propagate is False
        assert len(app_logger.handlers) == 2
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in app_logger.handlers)
        assert log_file.parent.is_dir()

    def test_third_party_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("THIRD_PARTY_LOG_LEVEL", "ERROR")

        setup_logging()

        assert logging.getLogger("gspread").level == logging.ERROR
        assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging(app_log_level="chatty").level == logging.INFO


class TestGetLogger:
    def test_module_names_nest_under_fintrack(self):
        assert get_logger("services.ledger").name == "fintrack.services.ledger"
        assert get_logger("fintrack.db.core").name == "fintrack.db.core"
        assert get_logger().name == "fintrack"
