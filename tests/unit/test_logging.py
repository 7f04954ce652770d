"""
Tests for logging configuration.
"""
import json
from pathlib import Path
import tempfile
from infra_coverage.utils.logging_config import configure_logging, get_logger


def test_get_logger():
    """Test getting a logger instance."""
    logger = get_logger(__name__)
    assert logger is not None


def test_configure_logging_console():
    """Test console logging configuration."""
    configure_logging(log_level="INFO", json_output=False)
    logger = get_logger(__name__)

    # Should not raise exception
    logger.info("test_message", district="Kampala")
    logger.debug("debug_message")  # Not printed at INFO


def test_configure_logging_json():
    """Test JSON logging configuration."""
    configure_logging(log_level="DEBUG", json_output=True)
    logger = get_logger(__name__)

    logger.info("test_json", analysis_type="telecom", districts=135)


def test_configure_logging_with_file():
    """Test logging to file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_file = Path(tmpdir) / "logs" / "coverage.log"

        configure_logging(
            log_level="INFO",
            log_file=log_file,
            json_output=False
        )

        logger = get_logger("infra_coverage.file_test")
        logger.info("test_file_logging", message="hello")

        # Parent directory is created on demand
        assert log_file.exists()
        assert "test_file_logging" in log_file.read_text()


def test_logging_with_exception():
    """Test logging with exception traceback."""
    configure_logging(log_level="ERROR", json_output=False)
    logger = get_logger(__name__)

    try:
        raise ValueError("Test error")
    except ValueError:
        logger.error("exception_occurred", exc_info=True)


def test_json_events_carry_module_logger_name(capsys):
    """JSON lines name the emitting package module and keep snake_case events."""
    configure_logging(log_level="INFO", json_output=True)
    logger = get_logger("infra_coverage.analysis.engine")

    logger.info("coverage_analysis_complete", analysis_type="telecom", results=3)
    logger.debug("district_population_estimated", district="Buvuma")

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    events = [json.loads(line) for line in lines]

    assert [e['event'] for e in events] == ['coverage_analysis_complete']
    assert events[0]['logger'] == 'infra_coverage.analysis.engine'
    assert events[0]['level'] == 'info'
    assert events[0]['results'] == 3
    assert 'timestamp' in events[0]
