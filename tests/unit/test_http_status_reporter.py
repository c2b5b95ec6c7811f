import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from smsoutbox.infrastructure.reporting.http_status_reporter import HttpStatusReporter


def _reporter(handler, server_url: str = "http://server/sms") -> tuple[HttpStatusReporter, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reporter = HttpStatusReporter(server_url, loop=asyncio.get_running_loop(), client=client)
    return reporter, client


@pytest.mark.asyncio
async def test_post_status_sends_form():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["form"] = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)
        return httpx.Response(200, text="OK")

    reporter, client = _reporter(handler)

    ok = await reporter.post_status("42", "failed", "radio off")

    assert ok is True
    assert seen["url"] == "http://server/sms"
    assert seen["form"] == {
        "id": ["42"],
        "status": ["failed"],
        "error": ["radio off"],
        "action": ["send_status"],
    }
    await client.aclose()


@pytest.mark.asyncio
async def test_report_is_fire_and_forget():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    reporter, client = _reporter(handler)

    reporter.report("7", "sent", "")
    assert calls == []  # nothing happens until the loop runs
    await asyncio.sleep(0)
    await reporter.aclose()

    assert len(calls) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_failures_are_swallowed_and_logged(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    reporter, client = _reporter(handler)

    ok = await reporter.post_status("1", "sent", "")
    rejected, rejected_client = _reporter(lambda _: httpx.Response(500))

    assert ok is False
    assert await rejected.post_status("1", "sent", "") is False
    assert "status report failed" in caplog.text
    await client.aclose()
    await rejected_client.aclose()


@pytest.mark.asyncio
async def test_no_server_url_skips_reporting():
    calls = []
    reporter, client = _reporter(lambda r: calls.append(r) or httpx.Response(200), server_url="")

    reporter.report("1", "sent", "")
    await asyncio.sleep(0)
    await reporter.aclose()

    assert calls == []
    await client.aclose()
