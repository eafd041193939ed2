"""
Tests for the logging helpers.

These tests verify:
    - Loggers are namespaced under 'snake_dqn'
    - Level names parse case-insensitively
    - Progress lines share the "key=value | ..." layout
    - File output is opened only when requested
"""

import logging
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from snake_dqn.utils.logger import (
    LogLevel, configure_from_config, get_log_path, get_logger,
    log_evaluation, log_model_event, log_training_metrics, setup_logging
)


@pytest.fixture
def console_logging():
    """Restore console-only logging after a test reconfigures it."""
    yield
    setup_logging(level=LogLevel.WARNING, file_output=False, force=True)


class TestLoggerNames:
    """Test logger namespacing."""

    def test_module_logger_is_namespaced(self):
        assert get_logger('snake_dqn.ai.agent').name == 'snake_dqn.ai.agent'
        assert get_logger('model').name == 'snake_dqn.model'

    def test_root_name(self):
        assert get_logger('snake_dqn').name == 'snake_dqn'


class TestLogLevel:
    """Test level parsing."""

    def test_from_name_ignores_case(self):
        assert LogLevel.from_name('debug') is LogLevel.DEBUG
        assert LogLevel.from_name('Warning') is LogLevel.WARNING

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            LogLevel.from_name('verbose')


class TestProgressLines:
    """Test the structured message helpers."""

    def test_training_metrics_line(self, caplog):
        caplog.set_level(logging.INFO, logger='snake_dqn')
        log_training_metrics(episode=100, score=40, epsilon=0.8187, max_score=90,
                             avg_score=12.34, learning_rate=0.001, buffer_size=5000)
        assert caplog.records[-1].name == 'snake_dqn.training'
        assert caplog.records[-1].getMessage() == (
            "ep=100 | score=40 | max=90 | avg=12.3 | eps=0.8187 | lr=0.001000 | buffer=5000"
        )

    def test_training_metrics_omits_missing_fields(self, caplog):
        caplog.set_level(logging.INFO, logger='snake_dqn')
        log_training_metrics(episode=1, score=0, epsilon=1.0)
        assert caplog.records[-1].getMessage() == "ep=1 | score=0 | eps=1.0000"

    def test_model_event_line(self, caplog):
        caplog.set_level(logging.INFO, logger='snake_dqn')
        log_model_event('export', 'models/model_best.json', episode=300, best_avg='12.5')
        assert caplog.records[-1].getMessage() == "EXPORT | models/model_best.json | episode=300 | best_avg=12.5"

    def test_evaluation_line(self, caplog):
        caplog.set_level(logging.INFO, logger='snake_dqn')
        log_evaluation('m.json', 3, {'mean_score': 20.0, 'max_score': 30, 'min_score': 10})
        assert caplog.records[-1].name == 'snake_dqn.evaluation'
        assert caplog.records[-1].getMessage() == "EVALUATE | m.json | episodes=3 | mean=20.0 | max=30 | min=10"


class TestSetup:
    """Test handler configuration."""

    def test_console_only_has_no_log_file(self, console_logging):
        setup_logging(file_output=False, force=True)
        assert get_log_path() is None

    def test_file_output_from_config(self, tmp_path, console_logging):
        config = Config(LOG_DIR=str(tmp_path / 'logs'), LOG_LEVEL='WARNING', LOG_TO_FILE=True)
        configure_from_config(config)
        path = get_log_path()
        assert path is not None
        assert path.parent == tmp_path / 'logs'

        get_logger('test').debug("written to the file only")
        for handler in logging.getLogger('snake_dqn').handlers:
            handler.flush()
        assert "written to the file only" in path.read_text(encoding='utf-8')

    def test_setup_is_idempotent_without_force(self, tmp_path, console_logging):
        setup_logging(file_output=False, force=True)
        setup_logging(log_dir=str(tmp_path), file_output=True)
        assert get_log_path() is None
