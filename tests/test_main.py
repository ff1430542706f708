"""Tests for __main__.py CLI functions."""

import types
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from cliphistory.__main__ import list_pinned, main, run_app
from cliphistory.models import ClipboardEntry, ContentKind


@pytest.fixture
def fake_app_module():
    """Stand-in for cliphistory.app, which needs rumps and AppKit."""
    module = types.ModuleType("cliphistory.app")
    module.ClipHistoryApp = MagicMock()
    with patch.dict("sys.modules", {"cliphistory.app": module}):
        yield module


class TestListPinned:
    def test_empty(self, storage, capsys):
        assert list_pinned(storage) == 0
        assert "No pinned entries." in capsys.readouterr().out

    def test_lists_entries(self, storage, capsys):
        storage.save_pinned(ContentKind.TEXT, [
            ClipboardEntry(content="first line\nsecond line", captured_at=datetime(2024, 3, 4, 5, 6), pinned=True),
        ])

        assert list_pinned(storage) == 0

        out = capsys.readouterr().out
        assert "2024-03-04 05:06" in out
        assert "first line second line" in out


class TestMain:
    @patch("cliphistory.__main__.list_pinned", return_value=0)
    def test_pinned_command(self, mock_list):
        with patch("sys.argv", ["cliphistory", "pinned"]):
            with pytest.raises(SystemExit) as exc:
                main()
        assert exc.value.code == 0
        mock_list.assert_called_once()

    @patch("cliphistory.__main__.run_app")
    def test_no_command_runs_app(self, mock_run):
        with patch("sys.argv", ["cliphistory"]):
            main()
        mock_run.assert_called_once_with(verbose=False)

    @patch("cliphistory.__main__.run_app")
    def test_verbose_flag(self, mock_run):
        with patch("sys.argv", ["cliphistory", "-v"]):
            main()
        mock_run.assert_called_once_with(verbose=True)

    def test_unknown_command_rejected(self):
        with patch("sys.argv", ["cliphistory", "install"]):
            with pytest.raises(SystemExit) as exc:
                main()
        assert exc.value.code == 2


class TestRunApp:
    @patch("cliphistory.__main__.logging.StreamHandler")
    @patch("cliphistory.__main__.logging.FileHandler")
    @patch("cliphistory.__main__.logging.basicConfig")
    @patch("cliphistory.__main__.ensure_dirs")
    def test_run_app_initializes_and_runs(
        self, mock_dirs, mock_logging, mock_file_handler, mock_stream_handler, fake_app_module
    ):
        run_app()

        mock_dirs.assert_called_once()
        mock_logging.assert_called_once()
        fake_app_module.ClipHistoryApp.assert_called_once()
        fake_app_module.ClipHistoryApp.return_value.run.assert_called_once()

    @patch("cliphistory.__main__.logging.StreamHandler")
    @patch("cliphistory.__main__.logging.FileHandler")
    @patch("cliphistory.__main__.logging.basicConfig")
    @patch("cliphistory.__main__.ensure_dirs")
    def test_run_app_configures_logging(
        self, mock_dirs, mock_logging, mock_file_handler, mock_stream_handler, fake_app_module
    ):
        run_app()

        call_kwargs = mock_logging.call_args[1]
        assert call_kwargs["level"] == 20  # logging.INFO
        assert "%(asctime)s" in call_kwargs["format"]
        assert len(call_kwargs["handlers"]) == 2

    @patch("cliphistory.__main__.logging.StreamHandler")
    @patch("cliphistory.__main__.logging.FileHandler")
    @patch("cliphistory.__main__.logging.basicConfig")
    @patch("cliphistory.__main__.ensure_dirs")
    def test_verbose_logs_debug(
        self, mock_dirs, mock_logging, mock_file_handler, mock_stream_handler, fake_app_module
    ):
        run_app(verbose=True)

        assert mock_logging.call_args[1]["level"] == 10  # logging.DEBUG
