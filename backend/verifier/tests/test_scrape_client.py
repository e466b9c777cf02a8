# verifier/tests/test_scrape_client.py
import requests

from verifier.clients.scrape_client import EvidenceExtractor, parse_html
from verifier.outcome import Degraded, Degradation, Ok
from verifier.schema import ExtractedEvidence

PAGE = """
<html>
  <head>
    <title>Vaccine study</title>
    <meta property="og:title" content="Vaccine study">
    <meta property="og:description" content="Vaccine causes infertility">
    <meta property="og:image" content="https://example.com/img/a.png">
    <meta property="og:url" content="https://example.com/claim">
    <link rel="canonical" href="https://example.com/claim">
  </head>
  <body>
    <article>
      <p>Researchers found no link between the vaccine and fertility in a study of 10,000 adults.</p>
      <p>The study was published in a peer-reviewed journal and replicated by two other groups.</p>
    </article>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.content = text.encode()
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_parse_html_reads_meta_and_body():
    evidence = parse_html(PAGE, "https://example.com/claim")
    assert evidence.description == "Vaccine causes infertility"
    assert evidence.image == "https://example.com/img/a.png"
    assert evidence.canonical_url == "https://example.com/claim"
    assert "Vaccine study" in evidence.title
    assert "Researchers found no link" in evidence.text


def test_parse_html_resolves_relative_meta_image():
    html = '<html><head><meta name="twitter:image" content="/pic.jpg"></head><body></body></html>'
    evidence = parse_html(html, "https://example.com/post/1")
    assert evidence.image.startswith("https://example.com/")
    assert evidence.image.endswith("pic.jpg")


def test_extract_success(monkeypatch):
    extractor = EvidenceExtractor()
    monkeypatch.setattr(extractor.session, "get", lambda url, timeout: FakeResponse(PAGE))
    outcome = extractor.extract("https://example.com/claim")
    assert isinstance(outcome, Ok)
    assert outcome.value.description == "Vaccine causes infertility"


def test_extract_network_failure_degrades_to_empty(monkeypatch):
    extractor = EvidenceExtractor()

    def unreachable(url, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(extractor.session, "get", unreachable)
    outcome = extractor.extract("https://example.com/claim")
    assert isinstance(outcome, Degraded)
    assert outcome.kind is Degradation.EVIDENCE_UNAVAILABLE
    assert outcome.value == ExtractedEvidence()


def test_extract_http_error_degrades(monkeypatch):
    extractor = EvidenceExtractor()
    monkeypatch.setattr(extractor.session, "get", lambda url, timeout: FakeResponse("gone", 404))
    assert isinstance(extractor.extract("https://example.com/claim"), Degraded)
