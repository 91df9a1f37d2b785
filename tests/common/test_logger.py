# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (mobicoop/common/logger.py).
"""

import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest

from mobicoop.common import logger as logger_module
from mobicoop.common.constants import TypeMsg
from mobicoop.common.logger import (
    ColoredFormatter,
    JsonFormatter,
    SizeRotatingFileHandler,
    _get_caller_info,
    _loggers,
    _read_logging_settings,
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "Test message", exc_info=None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        """Тест форматирования базовой записи."""
        result = JsonFormatter().format(_record())

        assert '"level": "INFO"' in result
        assert '"message": "Test message"' in result
        assert '"module": "test_module"' in result
        assert '"function": "test_function"' in result
        assert '"line": 10' in result

    def test_format_with_extra_data(self) -> None:
        """Тест форматирования записи с дополнительными данными."""
        record = _record(logging.WARNING, "Warning message")
        record.extra_data = {"proposal_id": "abc", "checkpoint": 2}

        result = JsonFormatter().format(record)

        assert '"extra"' in result
        assert '"proposal_id": "abc"' in result
        assert '"checkpoint": 2' in result

    def test_format_with_exception(self) -> None:
        """Тест форматирования записи с исключением."""
        try:
            raise ValueError("Test exception")
        except ValueError:
            exc_info = sys.exc_info()

        result = JsonFormatter().format(_record(logging.ERROR, "Error occurred", exc_info))

        assert '"exception"' in result
        assert "ValueError" in result
        assert "Test exception" in result


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_format_basic_record(self) -> None:
        """Тест цветного форматирования базовой записи."""
        result = ColoredFormatter().format(_record())

        assert "INFO" in result
        assert "Test message" in result
        assert "\033[" in result

    def test_format_with_caller_info(self) -> None:
        """Тест форматирования с информацией о вызывающей функции."""
        record = _record(logging.DEBUG, "Debug message")
        record.extra_data = {
            "caller_function": "create_ad",
            "caller_module": "mobicoop.core.carpool.service",
            "caller_file": "service.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "mobicoop.core.carpool.service.create_ad()" in result
        assert "service.py:42" in result


class TestSizeRotatingFileHandler:
    """Тесты для SizeRotatingFileHandler."""

    def test_creates_directory_and_file(self, tmp_path: Path) -> None:
        """Создаёт директорию и пишет в <name>.log."""
        log_dir = tmp_path / "logs"
        handler = SizeRotatingFileHandler(log_dir=str(log_dir), max_bytes=1024, logger_name="app")
        try:
            assert log_dir.is_dir()
            assert handler.baseFilename.endswith("app.log")
        finally:
            handler.close()

    def test_rollover_archives_file(self, tmp_path: Path) -> None:
        """При превышении размера файл переименовывается в архивный."""
        handler = SizeRotatingFileHandler(log_dir=str(tmp_path), max_bytes=10, logger_name="app")
        handler.setFormatter(logging.Formatter("%(message)s"))
        try:
            handler.emit(_record(msg="x" * 50))
            handler.emit(_record(msg="second"))
        finally:
            handler.close()

        archives = [p for p in tmp_path.iterdir() if p.name.startswith("app_")]
        assert len(archives) == 1
        assert (tmp_path / "app.log").read_text(encoding="utf-8").strip() == "second"

    def test_no_rollover_without_limit(self, tmp_path: Path) -> None:
        """max_bytes=0 отключает ротацию."""
        handler = SizeRotatingFileHandler(log_dir=str(tmp_path), max_bytes=0, logger_name="app")
        try:
            assert handler.shouldRollover(_record()) is False
        finally:
            handler.close()


class TestGetLogger:
    """Тесты для get_logger."""

    def setup_method(self) -> None:
        """Очистка кэша логгеров перед каждым тестом."""
        _loggers.clear()
        for logger in logging.Logger.manager.loggerDict.values():
            if isinstance(logger, logging.Logger):
                logger.handlers.clear()

    def test_get_logger_creates_new_logger(self) -> None:
        """Тест создания нового логгера."""
        logger = get_logger("test_logger")

        assert logger.name == "test_logger"
        assert len(logger.handlers) >= 1
        assert logger.propagate is False

    def test_get_logger_returns_cached_logger(self) -> None:
        """Тест возврата кэшированного логгера."""
        assert get_logger("test_logger") is get_logger("test_logger")

    def test_get_logger_uses_settings(self) -> None:
        """Тест использования настроек из конфига."""
        with patch.object(logger_module, "_read_logging_settings", return_value={
            "level": "WARNING",
            "format": "json",
            "to_file": False,
            "file_path": "logs/test.log",
            "max_bytes": 1024,
        }):
            logger = get_logger("test_with_settings")

        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_get_logger_writes_files_when_enabled(self, tmp_path: Path) -> None:
        """При LOG_TO_FILE добавляются файловый хендлер и хендлер ошибок."""
        with patch.object(logger_module, "_read_logging_settings", return_value={
            "level": "DEBUG",
            "format": "colored",
            "to_file": True,
            "file_path": str(tmp_path / "app.log"),
            "max_bytes": 1024,
        }), patch.object(logger_module, "_GLOBAL_FILE_HANDLER", None), \
                patch.object(logger_module, "_GLOBAL_ERROR_HANDLER", None):
            logger = get_logger("test_with_files")
            file_handlers = [h for h in logger.handlers if isinstance(h, SizeRotatingFileHandler)]
            assert len(file_handlers) == 2
            assert any(h.level == logging.ERROR for h in file_handlers)
            for handler in file_handlers:
                handler.close()

    def test_read_settings_falls_back_on_mock(self) -> None:
        """Значения не нужного типа заменяются значениями по умолчанию."""
        mock_settings = Mock()
        with patch("mobicoop.config.settings", mock_settings):
            values = _read_logging_settings()

        assert values["level"] == "DEBUG"
        assert values["to_file"] is False


class TestSetupLogging:
    """Тесты для setup_logging."""

    def setup_method(self) -> None:
        _loggers.clear()

    def test_setup_logging_initializes_system(self) -> None:
        """Тест инициализации системы логирования."""
        with patch.object(logger_module, "_LOGGING_INITIALIZED", False):
            setup_logging()

        assert "mobicoop" in _loggers

    def test_setup_logging_sets_third_party_levels(self) -> None:
        """Тест установки уровней для сторонних библиотек."""
        with patch.object(logger_module, "_LOGGING_INITIALIZED", False):
            setup_logging()

        assert logging.getLogger("asyncpg").level == logging.WARNING
        assert logging.getLogger("aio_pika").level == logging.WARNING


class TestGetCallerInfo:
    """Тесты для _get_caller_info."""

    def test_get_caller_info_returns_dict(self) -> None:
        assert isinstance(_get_caller_info(), dict)

    @pytest.mark.asyncio
    async def test_caller_info_points_to_calling_code(self) -> None:
        """В extra попадает функция, вызвавшая log_info."""
        mock_logger = MagicMock()

        async def create_ad_stub() -> None:
            await log_info("message")

        with patch.object(logger_module, "get_logger", return_value=mock_logger):
            await create_ad_stub()

        extra = mock_logger.info.call_args[1]["extra"]["extra_data"]
        assert extra["caller_function"] == "create_ad_stub"


class TestLogFunctions:
    """Тесты для асинхронных функций логирования."""

    def setup_method(self) -> None:
        _loggers.clear()

    @pytest.mark.asyncio
    async def test_log_info_basic(self) -> None:
        """Тест базового логирования INFO."""
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message")

            mock_info.assert_called_once()
            assert "Test message" in mock_info.call_args[0]

    @pytest.mark.asyncio
    async def test_log_info_with_type_msg(self) -> None:
        """Тест логирования с разными типами сообщений."""
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_info("Debug message", type_msg=TypeMsg.DEBUG)
            mock_debug.assert_called_once()

        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_info("Warning message", type_msg=TypeMsg.WARNING)
            mock_warning.assert_called_once()

        with patch.object(logging.Logger, "critical") as mock_critical:
            await log_info("Critical message", type_msg=TypeMsg.CRITICAL)
            mock_critical.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_info_with_extra(self) -> None:
        """Тест логирования с дополнительными данными."""
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message", extra={"ad_id": "abc"})

            extra = mock_info.call_args[1]["extra"]["extra_data"]
            assert extra["ad_id"] == "abc"

    @pytest.mark.asyncio
    async def test_log_debug(self) -> None:
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_debug("Debug message")
            mock_debug.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_warning(self) -> None:
        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_warning("Warning message")
            mock_warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_error_with_exc_info(self) -> None:
        """Тест логирования ошибки с трейсбеком."""
        with patch.object(logging.Logger, "error") as mock_error:
            await log_error("Error message", exc_info=True)

            mock_error.assert_called_once()
            assert mock_error.call_args[1].get("exc_info") is True

    @pytest.mark.asyncio
    async def test_log_info_with_custom_logger_name(self) -> None:
        """Тест логирования с пользовательским именем логгера."""
        with patch("mobicoop.common.logger.get_logger") as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            await log_info("Test message", logger_name="custom_logger")

            mock_get_logger.assert_called_once_with("custom_logger")
            mock_logger.info.assert_called_once()
