import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock

from common.core_utils import SymbolFormatter, setup_logging


def _record(level):
    return logging.LogRecord("kube_node_setup", level, __file__, 1, "msg", None, None)


def test_symbol_formatter_adds_level_symbol():
    formatter = SymbolFormatter(fmt="%(symbol)s %(message)s")

    assert formatter.format(_record(logging.INFO)) == "ℹ️ msg"
    assert formatter.format(_record(logging.ERROR)) == "❌ msg"
    assert formatter.format(_record(logging.CRITICAL)) == "🔥 msg"


def test_symbol_formatter_custom_symbols():
    formatter = SymbolFormatter(
        fmt="%(symbol)s %(message)s", symbols={"warning": "W"}
    )
    assert formatter.format(_record(logging.WARNING)) == "W msg"
    # Unknown keys fall back to the built-in symbol.
    assert formatter.format(_record(logging.DEBUG)) == "🐛 msg"


def test_setup_logging_with_file_and_console(mocker):
    mock_file_handler = mocker.patch("logging.FileHandler")
    mock_stream_handler = mocker.patch("logging.StreamHandler")
    mock_formatter = mocker.patch("common.core_utils.SymbolFormatter")
    mocker.patch("pathlib.Path.mkdir")

    mock_root_logger = MagicMock()
    mocker.patch("logging.getLogger", return_value=mock_root_logger)
    old_handler = MagicMock()
    mock_root_logger.handlers = [old_handler]

    log_file_path = str(Path("logs/test.log"))
    setup_logging(
        log_level=logging.DEBUG,
        log_file=log_file_path,
        log_to_console=True,
        log_prefix="[NODE-SETUP]",
    )

    mock_file_handler.assert_called_once_with(Path(log_file_path), mode="a")
    mock_stream_handler.assert_called_once_with(sys.stdout)
    fmt = mock_formatter.call_args.kwargs["fmt"]
    assert fmt.startswith("[NODE-SETUP] ")
    mock_root_logger.setLevel.assert_called_once_with(logging.DEBUG)
    mock_root_logger.removeHandler.assert_called_once_with(old_handler)
    old_handler.close.assert_called_once()
    assert mock_root_logger.addHandler.call_count == 2


def test_setup_logging_console_only_without_prefix(mocker):
    mocker.patch("logging.StreamHandler")
    mock_formatter = mocker.patch("common.core_utils.SymbolFormatter")
    mock_root_logger = MagicMock()
    mocker.patch("logging.getLogger", return_value=mock_root_logger)
    mock_root_logger.handlers = []

    setup_logging(log_file=None, symbols={"info": "i"})

    assert mock_formatter.call_args.kwargs["fmt"].startswith("%(asctime)s")
    assert mock_formatter.call_args.kwargs["symbols"] == {"info": "i"}
    assert mock_root_logger.addHandler.call_count == 1
