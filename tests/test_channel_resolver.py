import httpx
import pytest

from game_events.services.channel_resolver import (
    extract_identifier_from_page,
    extract_identifier_from_url,
    resolve,
)
from game_events.services.errors import ResolutionFailure


CHANNEL_ID = "UCabcdefghijklmnopqrstuv"


def test_identifier_from_channel_url():
    assert extract_identifier_from_url(f"https://www.youtube.com/channel/{CHANNEL_ID}") == CHANNEL_ID
    assert extract_identifier_from_url("https://www.youtube.com/@somegame") is None
    assert extract_identifier_from_url(f"https://example.com/channel/{CHANNEL_ID}") is None


@pytest.mark.parametrize(
    "markup",
    [
        f'{{"externalId":"{CHANNEL_ID}"}}',
        f'{{"browseId":"{CHANNEL_ID}"}}',
        f'<link href="/channel/{CHANNEL_ID}">',
    ],
)
def test_identifier_from_page(markup):
    assert extract_identifier_from_page(markup) == CHANNEL_ID


@pytest.mark.asyncio
async def test_resolve_direct_url_makes_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    identifier = await resolve(
        f"https://www.youtube.com/channel/{CHANNEL_ID}",
        transport=httpx.MockTransport(handler),
    )

    assert identifier == CHANNEL_ID


@pytest.mark.asyncio
async def test_resolve_handle_reads_page():
    def handler(request):
        assert request.url.path == "/@somegame"
        return httpx.Response(200, text=f'<script>var d = {{"externalId":"{CHANNEL_ID}"}};</script>')

    identifier = await resolve("https://www.youtube.com/@somegame", transport=httpx.MockTransport(handler))

    assert identifier == CHANNEL_ID


@pytest.mark.asyncio
async def test_resolve_failure_cases():
    def handler(request):
        if request.url.path == "/@gone":
            return httpx.Response(404)
        return httpx.Response(200, text="<html>nothing here</html>")

    transport = httpx.MockTransport(handler)

    with pytest.raises(ResolutionFailure):
        await resolve("https://www.youtube.com/@gone", transport=transport)
    with pytest.raises(ResolutionFailure):
        await resolve("https://www.youtube.com/@empty", transport=transport)
    with pytest.raises(ResolutionFailure):
        await resolve("not a url", transport=transport)
