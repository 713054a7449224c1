"""
Tests for the run.py launcher script.

Validates each step of the launcher without actually starting services.
"""
import sys
import urllib.error
from unittest.mock import patch, MagicMock, Mock

import pytest

# Import functions from run.py at project root
sys.path.insert(0, str(__import__("pathlib").Path(__file__).resolve().parent.parent))
import run


class TestCheckPythonDeps:
    """Test Python dependency checking."""

    def test_all_deps_present(self):
        """All required packages are installed in the test environment."""
        assert run.check_python_deps() is True

    @patch("builtins.__import__", side_effect=ImportError("no module"))
    def test_missing_dep_returns_false(self, mock_import):
        assert run.check_python_deps() is False


class TestStartDataService:
    """Test starting the remote data service."""

    @patch("subprocess.Popen")
    def test_start_success(self, mock_popen):
        proc = Mock()
        mock_popen.return_value = proc
        assert run.start_data_service() is proc
        args = mock_popen.call_args[0][0]
        assert args[0] == sys.executable
        assert args[1:] == ["-m", "src.sync_server.app"]

    @patch("subprocess.Popen", side_effect=OSError("no python"))
    def test_start_failure_returns_none(self, mock_popen):
        assert run.start_data_service() is None


class TestWaitForDataService:
    """Test data service health check waiting."""

    @patch("urllib.request.urlopen")
    def test_healthy_immediately(self, mock_urlopen):
        mock_resp = MagicMock()
        mock_resp.__enter__ = Mock(return_value=Mock(status=200))
        mock_resp.__exit__ = Mock(return_value=False)
        mock_urlopen.return_value = mock_resp

        assert run.wait_for_data_service() is True

    @patch("run.MAX_WAIT_SECONDS", 1)
    @patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused"))
    def test_timeout_returns_false(self, mock_urlopen):
        assert run.wait_for_data_service() is False

    @patch("time.sleep")
    @patch("urllib.request.urlopen")
    def test_healthy_after_retries(self, mock_urlopen, mock_sleep):
        """Becomes healthy after initial failures."""
        mock_resp = MagicMock()
        mock_resp.__enter__ = Mock(return_value=Mock(status=200))
        mock_resp.__exit__ = Mock(return_value=False)

        mock_urlopen.side_effect = [
            urllib.error.URLError("refused"),
            urllib.error.URLError("refused"),
            mock_resp,
        ]

        assert run.wait_for_data_service() is True


class TestMainFlow:
    """Test the main() orchestration flow."""

    @patch("run.launch_app")
    @patch("run.wait_for_data_service", return_value=True)
    @patch("run.start_data_service")
    @patch("run.check_python_deps", return_value=True)
    def test_full_success_flow(self, mock_deps, mock_start, mock_wait, mock_launch):
        service = Mock()
        mock_start.return_value = service
        result = run.main([])
        assert result == 0
        mock_wait.assert_called_once()
        mock_launch.assert_called_once_with(run.DATA_SERVICE_URL)
        service.terminate.assert_called_once()

    @patch("run.check_python_deps", return_value=False)
    def test_missing_deps_exits(self, mock_deps):
        assert run.main([]) == 1

    @patch("run.launch_app")
    @patch("run.start_data_service")
    @patch("run.check_python_deps", return_value=True)
    def test_local_only_skips_data_service(self, mock_deps, mock_start, mock_launch):
        assert run.main(["--local-only"]) == 0
        mock_start.assert_not_called()
        mock_launch.assert_called_once_with("")

    @patch("run.launch_app")
    @patch("run.start_data_service", return_value=None)
    @patch("run.check_python_deps", return_value=True)
    def test_service_start_fails_still_launches(self, mock_deps, mock_start, mock_launch):
        assert run.main([]) == 0
        mock_launch.assert_called_once_with("")

    @patch("run.launch_app")
    @patch("run.wait_for_data_service", return_value=False)
    @patch("run.start_data_service")
    @patch("run.check_python_deps", return_value=True)
    def test_service_unhealthy_still_launches(self, mock_deps, mock_start, mock_wait, mock_launch):
        """App launches even if the data service never answers; sync reports offline."""
        mock_start.return_value = Mock()
        assert run.main([]) == 0
        mock_launch.assert_called_once_with(run.DATA_SERVICE_URL)


class TestLaunchApp:
    """Test the app launcher function."""

    @patch("threading.Thread")
    @patch("subprocess.run")
    def test_launch_runs_web_app_with_remote_url(self, mock_run, mock_thread):
        mock_thread.return_value = Mock()
        run.launch_app("http://localhost:3000")
        mock_run.assert_called_once()
        args = mock_run.call_args[0][0]
        assert args[0] == sys.executable
        assert args[1:] == ["-m", "src.web.app"]
        assert mock_run.call_args[1]["env"]["TEAMSYNC_REMOTE_URL"] == "http://localhost:3000"

    @patch("threading.Thread")
    @patch("subprocess.run")
    def test_launch_starts_browser_thread(self, mock_run, mock_thread):
        mock_t = Mock()
        mock_thread.return_value = mock_t
        run.launch_app("")
        mock_thread.assert_called_once()
        mock_t.start.assert_called_once()
        assert mock_thread.call_args[1]["daemon"] is True
