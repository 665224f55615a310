from __future__ import annotations

import unittest

import aiohttp

from src.services.torn.client import HIDDEN_KEY, TornClient
from src.services.torn.errors import UpstreamReportedError, UpstreamUnavailable

API_KEY = "secretkey123"


class FakeResponse:
    def __init__(self, status: int = 200, body=None, text: str = "", reason: str = "OK", bad_json: bool = False):
        self.status = status
        self.reason = reason
        self._body = body
        self._text = text
        self._bad_json = bad_json

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self):
        return self._text

    async def json(self, content_type=None):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._body


class FakeSession:
    def __init__(self, response=None, error: BaseException | None = None):
        self.response = response
        self.error = error
        self.closed = False
        self.urls: list[str] = []

    def get(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


def make_client(session: FakeSession) -> TornClient:
    return TornClient(api_key=API_KEY, faction_id="4242", base_url="https://api.example/v2/", session=session)


class TornClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_returns_payload_and_builds_url(self):
        session = FakeSession(FakeResponse(body={"members": []}))
        data = await make_client(session).fetch_members()
        self.assertEqual(data, {"members": []})
        self.assertEqual(session.urls, [f"https://api.example/v2/faction/4242?selections=members&key={API_KEY}"])

    async def test_payload_error_field(self):
        session = FakeSession(FakeResponse(body={"error": {"code": 2, "error": "Incorrect key"}}))
        with self.assertRaises(UpstreamReportedError) as ctx:
            await make_client(session).fetch_members()
        self.assertEqual(ctx.exception.code, 2)
        self.assertEqual(ctx.exception.detail, "Incorrect key")

    async def test_http_error_is_unavailable_and_redacted(self):
        session = FakeSession(FakeResponse(status=502, reason="Bad Gateway", text=f"upstream said key={API_KEY}"))
        with self.assertRaises(UpstreamUnavailable) as ctx:
            await make_client(session).fetch_members()
        self.assertEqual(ctx.exception.status, 502)
        self.assertNotIn(API_KEY, str(ctx.exception))
        self.assertIn(HIDDEN_KEY, str(ctx.exception))

    async def test_undecodable_body(self):
        session = FakeSession(FakeResponse(bad_json=True))
        with self.assertRaises(UpstreamUnavailable):
            await make_client(session).fetch_members()

    async def test_non_object_body(self):
        session = FakeSession(FakeResponse(body=[1, 2, 3]))
        with self.assertRaises(UpstreamUnavailable):
            await make_client(session).fetch_members()

    async def test_network_error(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))
        with self.assertRaises(UpstreamUnavailable):
            await make_client(session).fetch_members()

    async def test_injected_session_is_not_closed(self):
        session = FakeSession(FakeResponse(body={}))
        client = make_client(session)
        await client.close()
        self.assertFalse(session.closed)

    def test_redact(self):
        client = make_client(FakeSession())
        self.assertEqual(client.redact(f"?key={API_KEY}"), f"?key={HIDDEN_KEY}")


if __name__ == "__main__":
    unittest.main()
