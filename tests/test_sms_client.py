import unittest
from unittest.mock import AsyncMock, patch

import httpx

from sms_mcp.sms_client import SmsClient, SmsConfig, format_result, normalize_body, redact_key

BASE_URL = "https://api.test/api.php"


def make_response(status_code: int, text: str) -> httpx.Response:
    return httpx.Response(status_code, text=text, request=httpx.Request("GET", BASE_URL))


class TestNormalization(unittest.TestCase):
    def test_json_object_string_is_parsed(self):
        self.assertEqual(normalize_body('{"ok":true}'), {"ok": True})
        self.assertEqual(normalize_body('  \n{"ok": true}  '), {"ok": True})

    def test_plain_text_passes_through(self):
        self.assertEqual(normalize_body("ERROR: insufficient funds"), "ERROR: insufficient funds")

    def test_broken_json_passes_through(self):
        self.assertEqual(normalize_body("{not json"), "{not json")

    def test_arrays_are_not_parsed(self):
        self.assertEqual(normalize_body("[1, 2]"), "[1, 2]")

    def test_format_result(self):
        self.assertEqual(format_result({"ok": True}), '{\n  "ok": true\n}')
        self.assertEqual(format_result("ACCESS_BALANCE:12.50"), "ACCESS_BALANCE:12.50")
        self.assertEqual(format_result(None), "null")
        self.assertEqual(format_result(True), "true")

    def test_redact_key(self):
        self.assertEqual(redact_key("abcdefghijklmnop"), "abcdefgh...")
        self.assertEqual(redact_key(""), "<none>")


class TestSmsClient(unittest.IsolatedAsyncioTestCase):
    async def test_request_builds_query_and_parses_json(self):
        client = SmsClient(SmsConfig(base_url=BASE_URL, api_key="secret-key"))

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200, '{"balance": "12.50"}')

            result = await client.request({"action": "balance"})

        self.assertEqual(result, {"balance": "12.50"})
        mock_get.assert_awaited_once_with(BASE_URL, params={"key": "secret-key", "action": "balance"})

    async def test_key_is_first_query_parameter(self):
        client = SmsClient(SmsConfig(base_url=BASE_URL, api_key="k"))

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200, "OK")
            await client.request({"action": "sms", "number": "5551234567", "service": "discord"})

        params = mock_get.call_args.kwargs["params"]
        self.assertEqual(list(params), ["key", "action", "number", "service"])

    async def test_raw_text_is_returned_unchanged(self):
        client = SmsClient(SmsConfig(base_url=BASE_URL, api_key="k"))

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200, "ERROR: insufficient funds")
            result = await client.request({"action": "number"})

        self.assertEqual(result, "ERROR: insufficient funds")

    async def test_http_error_propagates(self):
        client = SmsClient(SmsConfig(base_url=BASE_URL, api_key="k"))

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(401, "bad key")
            with self.assertRaises(httpx.HTTPStatusError):
                await client.request({"action": "balance"})

        self.assertEqual(mock_get.await_count, 1)

    async def test_timeout_propagates(self):
        client = SmsClient(SmsConfig(base_url=BASE_URL, api_key="k"))

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ReadTimeout("timed out")
            with self.assertRaises(httpx.TimeoutException):
                await client.request({"action": "balance"})

        self.assertEqual(mock_get.await_count, 1)


if __name__ == "__main__":
    unittest.main()
