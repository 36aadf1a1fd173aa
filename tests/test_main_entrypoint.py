"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import contextlib
import io
import tempfile
from pathlib import Path
import unittest
from unittest.mock import patch

from trade_notifier.__main__ import main
from trade_notifier.exceptions import MessengerConfigurationError


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def test_version_flag_prints_version(self) -> None:
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            status = main(["--version"])
        self.assertEqual(status, 0)
        self.assertTrue(stdout.getvalue().startswith("trade-notifier "))

    def test_init_config_writes_default_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "notification.toml"
            with contextlib.redirect_stdout(io.StringIO()):
                status = main(["--config", str(config_path), "--init-config"])
            self.assertEqual(status, 0)
            self.assertIn("[telegram]", config_path.read_text(encoding="utf-8"))

            with contextlib.redirect_stderr(io.StringIO()):
                self.assertEqual(
                    main(["--config", str(config_path), "--init-config"]), 1
                )

    def test_main_initializes_sends_and_stops(self) -> None:
        with patch("trade_notifier.__main__.configure_logging") as logging_mock, patch(
            "trade_notifier.__main__.initialize_notification_system"
        ) as init_mock:
            service = init_mock.return_value
            status = main(
                ["--config", "/nonexistent/notification.toml", "--test-message", "ping"]
            )

        self.assertEqual(status, 0)
        logging_mock.assert_called_once()
        init_mock.assert_called_once_with(
            config_path=Path("/nonexistent/notification.toml")
        )
        service.send_notification.assert_called_once_with("ping")
        service.close.assert_called_once()

    def test_configuration_error_returns_failure(self) -> None:
        stderr = io.StringIO()
        with patch("trade_notifier.__main__.configure_logging"), patch(
            "trade_notifier.__main__.initialize_notification_system",
            side_effect=MessengerConfigurationError("no messenger"),
        ), contextlib.redirect_stderr(stderr):
            status = main(["--config", "/nonexistent/notification.toml"])

        self.assertEqual(status, 1)
        self.assertIn("no messenger", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
