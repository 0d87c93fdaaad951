"""Tests for logging configuration"""
import logging
from unittest.mock import patch

import pytest

from gitflow_cli.logging_config import get_logger, setup_logging


class TestGetLogger:
    def test_package_prefix_is_stripped(self):
        assert get_logger("gitflow_cli.core.workflow").name == "core.workflow"

    def test_services_git_stays_apart_from_gitpython(self):
        """Test our git adapter never shares GitPython's 'git' logger."""
        assert get_logger("gitflow_cli.services.git.operations").name == "services.git.operations"


class TestSetupLogging:
    @pytest.mark.parametrize("verbose,debug,level", [
        (False, False, logging.WARNING),
        (True, False, logging.INFO),
    ])
    def test_levels(self, verbose, debug, level):
        setup_logging(verbose=verbose, debug=debug)
        assert logging.getLogger().level == level
        assert logging.getLogger("git").level == logging.WARNING

    def test_debug_writes_log_file(self, temp_dir):
        log_file = temp_dir / "logs" / "gitflow.log"
        with patch("gitflow_cli.logging_config.get_log_file", return_value=log_file):
            setup_logging(debug=True)
            get_logger("gitflow_cli.tests").debug("hello from the test")
            for handler in logging.getLogger().handlers:
                handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "hello from the test" in log_file.read_text()
        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.FileHandler):
                handler.close()
