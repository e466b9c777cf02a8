# verifier/tests/test_verdict_client.py
import pytest

from verifier.clients.verdict_client import (
    MAX_IMAGE_BYTES,
    ImageAnalyzer,
    Summarizer,
    VerdictGenerator,
    parse_verdict,
)
from verifier.config import Settings
from verifier.errors import GenerationFailure
from verifier.outcome import Degraded, Degradation, Ok
from verifier.schema import VerdictKind


class FakeLLM:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def call(self, prompt, **kwargs):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return {"response": self.response, "latency_ms": 1.0}


def test_parse_verdict_normalizes_label_and_dedupes_citations():
    raw = '```json\n{"verdict": "MOSTLY false", "rationale": "r", "citations": ["a", "a", "b"], "confidence": "70%"}\n```'
    result = parse_verdict(raw)
    assert result.verdict is VerdictKind.MOSTLY_FALSE
    assert result.citations == ["a", "b"]
    assert result.confidence == 70


def test_parse_verdict_rejects_non_object():
    assert parse_verdict("[1, 2]") is None
    assert parse_verdict("not json") is None


def test_out_of_range_confidence_is_clamped():
    assert parse_verdict('{"verdict": "True", "confidence": 140}').confidence == 100
    assert parse_verdict('{"verdict": "True", "confidence": true}').confidence is None


def test_generate_returns_ok_for_valid_json():
    llm = FakeLLM('{"verdict": "Mixed", "rationale": "some support", "citations": ["https://a"]}')
    outcome = VerdictGenerator(llm).generate("claim", "source", "extra evidence")

    assert isinstance(outcome, Ok)
    assert outcome.value.verdict is VerdictKind.MIXED
    assert outcome.value.confidence is None
    assert "extra evidence" in llm.prompts[0]


def test_malformed_output_maps_to_safe_default():
    outcome = VerdictGenerator(FakeLLM("The claim is probably true.")).generate("claim", "")

    assert isinstance(outcome, Degraded)
    assert outcome.kind is Degradation.GENERATION_MALFORMED
    assert outcome.value.verdict is VerdictKind.UNVERIFIABLE
    assert outcome.value.rationale == "Malformed JSON from model"
    assert outcome.value.citations == []


def test_call_failure_raises_generation_failure():
    generator = VerdictGenerator(FakeLLM(error=RuntimeError("401 unauthorized")))
    with pytest.raises(GenerationFailure):
        generator.generate("claim", "source")


def test_mock_mode_skips_model():
    generator = VerdictGenerator.from_settings(Settings(mock_mode=True, _env_file=None))
    outcome = generator.generate("The sky is green", "")
    assert isinstance(outcome, Ok)
    assert outcome.value.verdict is VerdictKind.UNVERIFIABLE


def test_summarizer_non_array_degrades_to_empty():
    outcome = Summarizer(FakeLLM('{"points": ["a"]}')).summarize("long text")
    assert isinstance(outcome, Degraded)
    assert outcome.value == []


def test_summarizer_failure_degrades_to_empty():
    outcome = Summarizer(FakeLLM(error=RuntimeError("boom"))).summarize("long text")
    assert isinstance(outcome, Degraded)
    assert outcome.kind is Degradation.ENRICHMENT_UNAVAILABLE


def test_summarizer_returns_points():
    outcome = Summarizer(FakeLLM('["First fact.", " ", "Second fact."]')).summarize("long text")
    assert outcome == Ok(["First fact.", "Second fact."])


def test_image_analyzer_network_failure_degrades(monkeypatch):
    analyzer = ImageAnalyzer(FakeLLM("insight"))

    def boom(*args, **kwargs):
        raise ConnectionError("unreachable")

    monkeypatch.setattr(analyzer.session, "get", boom)
    outcome = analyzer.analyze("https://example.com/a.png", "claim")
    assert isinstance(outcome, Degraded)
    assert outcome.value == ""


def test_parse_verdict_keeps_raw_label():
    result = parse_verdict('{"verdict": "Mixed - mostly true", "rationale": "r"}')
    assert result.label == "Mixed - mostly true"
    assert result.verdict is VerdictKind.MOSTLY_TRUE
    assert result.is_ambiguous


class FakeImageResponse:
    def __init__(self, chunks, content_type="image/png", content_length=None):
        self.chunks = chunks
        self.headers = {"Content-Type": content_type}
        if content_length is not None:
            self.headers["Content-Length"] = str(content_length)
        self.chunks_read = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size=1):
        for chunk in self.chunks:
            self.chunks_read += 1
            yield chunk


def _analyzer_with(monkeypatch, response, llm=None):
    analyzer = ImageAnalyzer(llm or FakeLLM("A chart with a doctored axis."))
    calls = []

    def fake_get(url, timeout=None, stream=False):
        calls.append(stream)
        return response

    monkeypatch.setattr(analyzer.session, "get", fake_get)
    return analyzer, calls


def test_image_analyzer_streams_and_passes_bytes(monkeypatch):
    llm = FakeLLM("A chart with a doctored axis.")
    analyzer, calls = _analyzer_with(monkeypatch, FakeImageResponse([b"ab", b"cd"]), llm)
    outcome = analyzer.analyze("https://example.com/a.png", "claim")

    assert outcome == Ok("A chart with a doctored axis.")
    assert calls == [True]
    assert llm.prompts[0][1] == {"mime_type": "image/png", "data": b"abcd"}


def test_image_analyzer_rejects_declared_oversize_without_reading(monkeypatch):
    response = FakeImageResponse([b"x"], content_length=MAX_IMAGE_BYTES + 1)
    analyzer, _ = _analyzer_with(monkeypatch, response)
    outcome = analyzer.analyze("https://example.com/big.png", "claim")

    assert isinstance(outcome, Degraded)
    assert outcome.reason == "image too large"
    assert response.chunks_read == 0


def test_image_analyzer_stops_reading_once_over_limit(monkeypatch):
    chunk = b"x" * (MAX_IMAGE_BYTES // 2 + 1)
    response = FakeImageResponse([chunk, chunk, chunk])
    llm = FakeLLM("never")
    analyzer, _ = _analyzer_with(monkeypatch, response, llm)
    outcome = analyzer.analyze("https://example.com/big.png", "claim")

    assert isinstance(outcome, Degraded)
    assert response.chunks_read == 2
    assert llm.prompts == []


def test_image_analyzer_rejects_non_image(monkeypatch):
    analyzer, _ = _analyzer_with(monkeypatch, FakeImageResponse([b"<html>"], content_type="text/html"))
    outcome = analyzer.analyze("https://example.com/page", "claim")
    assert isinstance(outcome, Degraded)
    assert outcome.reason == "not an image: text/html"
