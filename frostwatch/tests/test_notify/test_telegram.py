"""Tests for Telegram delivery with mocked httpx."""

import json

import httpx
import respx

from frostwatch.notify.telegram import LogDeliverer, TelegramDeliverer

SEND_URL = "https://tg.example.com/botTOKEN/sendMessage"


class TestTelegramDeliverer:
    @respx.mock
    def test_success(self):
        route = respx.post(SEND_URL).mock(
            return_value=httpx.Response(200, json={"ok": True, "result": {}})
        )
        deliverer = TelegramDeliverer("TOKEN", api_base="https://tg.example.com")

        assert deliverer.deliver("42", "hello") is True
        body = json.loads(route.calls[0].request.content)
        assert body == {"chat_id": "42", "text": "hello"}

    @respx.mock
    def test_http_failure(self):
        respx.post(SEND_URL).mock(return_value=httpx.Response(403, json={"ok": False}))
        deliverer = TelegramDeliverer("TOKEN", api_base="https://tg.example.com")
        assert deliverer.deliver("42", "hello") is False

    @respx.mock
    def test_not_ok(self):
        respx.post(SEND_URL).mock(return_value=httpx.Response(200, json={"ok": False}))
        deliverer = TelegramDeliverer("TOKEN", api_base="https://tg.example.com")
        assert deliverer.deliver("42", "hello") is False

    @respx.mock
    def test_non_object_body(self):
        respx.post(SEND_URL).mock(return_value=httpx.Response(200, json=["unexpected"]))
        deliverer = TelegramDeliverer("TOKEN", api_base="https://tg.example.com")
        assert deliverer.deliver("42", "hello") is False

    @respx.mock
    def test_invalid_json_body(self):
        respx.post(SEND_URL).mock(return_value=httpx.Response(200, text="<html>"))
        deliverer = TelegramDeliverer("TOKEN", api_base="https://tg.example.com")
        assert deliverer.deliver("42", "hello") is False

    @respx.mock
    def test_network_error(self):
        respx.post(SEND_URL).mock(side_effect=httpx.ConnectError("down"))
        deliverer = TelegramDeliverer("TOKEN", api_base="https://tg.example.com")
        assert deliverer.deliver("42", "hello") is False


def test_log_deliverer_always_succeeds():
    assert LogDeliverer().deliver("42", "hello") is True
