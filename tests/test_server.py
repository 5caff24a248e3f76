import os
import unittest
from unittest.mock import patch

from sms_mcp import server
from sms_mcp.sms_client import DEFAULT_BASE_URL, SmsConfig


class TestApiKeyResolution(unittest.TestCase):
    def test_cli_flag_takes_precedence(self):
        with patch.dict(os.environ, {"SMS_API_KEY": "from-env"}):
            args = server.parse_args(["--api-key", "from-cli"])
            self.assertEqual(server.resolve_api_key(args.api_key), "from-cli")

    def test_short_flag(self):
        args = server.parse_args(["-k", "short"])
        self.assertEqual(args.api_key, "short")

    def test_environment_fallback(self):
        with patch.dict(os.environ, {"SMS_API_KEY": "from-env"}):
            args = server.parse_args([])
            self.assertEqual(server.resolve_api_key(args.api_key), "from-env")

    def test_empty_when_unset(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(server.resolve_api_key(None), "")


class TestMain(unittest.TestCase):
    def test_main_builds_config(self):
        env = {"SMS_API_BASE_URL": "https://api.test/api.php"}
        with patch.dict(os.environ, env, clear=True), patch("sms_mcp.server.anyio.run") as mock_run:
            server.main(["-k", "abc123"])

        mock_run.assert_called_once_with(
            server.serve, SmsConfig(base_url="https://api.test/api.php", api_key="abc123")
        )

    def test_main_warns_without_key(self):
        with patch.dict(os.environ, {}, clear=True), patch("sms_mcp.server.anyio.run") as mock_run:
            with self.assertLogs("sms-mcp-cli", level="WARNING") as logs:
                server.main([])

        self.assertIn("No API key provided", logs.output[0])
        config = mock_run.call_args.args[1]
        self.assertEqual(config, SmsConfig(base_url=DEFAULT_BASE_URL, api_key=""))


if __name__ == "__main__":
    unittest.main()
