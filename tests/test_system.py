"""
Tests for system utilities (privilege detection, opening reports).

Run: python3 -m pytest tests/test_system.py -v
"""

import sys
import webbrowser
from pathlib import Path
from unittest.mock import patch

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostscope.utils.system import check_elevated, get_system_info, open_report


class TestCheckElevated:
    """Tests for check_elevated function."""

    def test_root_when_euid_zero(self):
        """Test returns True when effective UID is 0."""
        with patch('hostscope.utils.system.is_windows', return_value=False):
            with patch('os.geteuid', return_value=0, create=True):
                assert check_elevated() is True

    def test_not_root_when_euid_nonzero(self):
        """Test returns False when effective UID is not 0."""
        with patch('hostscope.utils.system.is_windows', return_value=False):
            with patch('os.geteuid', return_value=1000, create=True):
                assert check_elevated() is False


class TestGetSystemInfo:
    """Tests for get_system_info function."""

    def test_keys(self):
        with patch('hostscope.utils.system.check_elevated', return_value=False):
            info = get_system_info()
        assert set(info) == {'platform', 'release', 'arch', 'python', 'elevated'}
        assert info['elevated'] is False


class TestOpenReport:
    """Tests for open_report function."""

    def test_opens_file_uri(self, tmp_path):
        report = tmp_path / "report.html"
        report.write_text("<html></html>")
        with patch('webbrowser.open', return_value=True) as mock_open:
            assert open_report(report) is True
        uri = mock_open.call_args[0][0]
        assert uri.startswith("file://")
        assert uri.endswith("report.html")

    def test_no_browser(self, tmp_path):
        """Test a browser error is reported as False."""
        with patch('webbrowser.open', side_effect=webbrowser.Error("no runnable browser")):
            assert open_report(tmp_path / "report.html") is False
