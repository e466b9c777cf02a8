# verifier/tests/test_corroboration_clients.py
import requests

from verifier.clients.google_factcheck_client import GoogleFactCheckClient
from verifier.clients.wikipedia_client import WikipediaClient
from verifier.outcome import Degraded, Ok
from verifier.schema import Corroboration


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.ok = status_code < 400

    def json(self):
        return self.payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


def test_wikipedia_query_combines_summaries(monkeypatch):
    client = WikipediaClient()

    def fake_get(url, params=None, timeout=None):
        if url == WikipediaClient.SEARCH_URL:
            return FakeResponse({"query": {"search": [{"title": "Apollo 11"}, {"title": "Missing"}]}})
        if url.endswith("/Apollo_11"):
            return FakeResponse({
                "title": "Apollo 11",
                "extract": "Apollo 11 landed on the Moon in 1969.",
                "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/Apollo_11"}},
            })
        return FakeResponse({}, status_code=404)

    monkeypatch.setattr(client.session, "get", fake_get)
    outcome = client.query("moon landing")

    assert isinstance(outcome, Ok)
    assert outcome.value.text == "Apollo 11\nApollo 11 landed on the Moon in 1969."
    assert outcome.value.citations == ["https://en.wikipedia.org/wiki/Apollo_11"]


def test_wikipedia_failure_is_empty(monkeypatch):
    client = WikipediaClient()

    def unreachable(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(client.session, "get", unreachable)
    outcome = client.query("anything")
    assert isinstance(outcome, Degraded)
    assert outcome.value == Corroboration()


def test_factcheck_without_api_key_returns_empty():
    outcome = GoogleFactCheckClient(api_key=None).query("claim")
    assert outcome == Ok(Corroboration())


def test_factcheck_reviews_become_text_and_citations(monkeypatch):
    client = GoogleFactCheckClient(api_key="key", rate_limit_delay=0)
    payload = {
        "claims": [
            {
                "text": "Vaccines cause infertility",
                "claimant": "Social media posts",
                "claimReview": [{
                    "publisher": {"name": "PolitiFact", "site": "politifact.com"},
                    "url": "https://www.politifact.com/review/1",
                    "textualRating": "False",
                }],
            },
            {"text": "No reviews here", "claimReview": []},
        ]
    }
    monkeypatch.setattr(client.session, "get", lambda url, params, timeout: FakeResponse(payload))

    outcome = client.query("Vaccine causes infertility")
    assert isinstance(outcome, Ok)
    assert outcome.value.text == (
        'PolitiFact rated "Vaccines cause infertility" as False (claimant: Social media posts).'
    )
    assert outcome.value.citations == ["https://www.politifact.com/review/1"]


def test_factcheck_http_error_degrades(monkeypatch):
    client = GoogleFactCheckClient(api_key="key", rate_limit_delay=0)
    monkeypatch.setattr(client.session, "get", lambda url, params, timeout: FakeResponse({}, 403))
    outcome = client.query("claim")
    assert isinstance(outcome, Degraded)
    assert outcome.value.text == ""


def test_rate_limit_wait_happens_outside_the_lock(monkeypatch):
    client = GoogleFactCheckClient(api_key="key", rate_limit_delay=10)
    held_during_sleep = []
    monkeypatch.setattr(
        "verifier.clients.google_factcheck_client.time.sleep",
        lambda seconds: held_during_sleep.append(client._rate_lock.locked()),
    )

    client._respect_rate_limit()
    client._respect_rate_limit()
    client._respect_rate_limit()

    assert held_during_sleep == [False, False]


def test_rate_limit_reserves_successive_slots(monkeypatch):
    client = GoogleFactCheckClient(api_key="key", rate_limit_delay=2)
    now = [100.0]
    waits = []
    monkeypatch.setattr("verifier.clients.google_factcheck_client.time.time", lambda: now[0])
    monkeypatch.setattr("verifier.clients.google_factcheck_client.time.sleep", waits.append)

    for _ in range(3):
        client._respect_rate_limit()

    assert waits == [2.0, 4.0]
    assert client.last_request_time == 104.0
