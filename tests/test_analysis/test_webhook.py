"""Tests for webhook delivery."""

import json

import httpx

from drive_analyzer.analysis.webhook import send_to_webhook


def test_empty_url():
    result = send_to_webhook("  ", {"a": 1})
    assert not result.ok
    assert result.message == "Webhook URL is not provided or is empty."


def test_posts_json():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200)

    result = send_to_webhook(
        "https://hooks.example.com/in", {"id": "1"}, transport=httpx.MockTransport(handler)
    )

    assert result.ok
    assert seen == {"method": "POST", "body": {"id": "1"}}


def test_non_success_status():
    def handler(request):
        return httpx.Response(500, text="boom")

    result = send_to_webhook("https://hooks.example.com/in", {}, transport=httpx.MockTransport(handler))
    assert not result.ok
    assert result.message == (
        "Webhook request failed with status 500: Internal Server Error. Body: boom"
    )


def test_network_error():
    def handler(request):
        raise httpx.ConnectError("unreachable")

    result = send_to_webhook("https://hooks.example.com/in", {}, transport=httpx.MockTransport(handler))
    assert not result.ok
    assert result.message.startswith("Failed to send webhook:")
