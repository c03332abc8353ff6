import pytest

from promoscreen import config, gemini_client
from promoscreen.errors import AnalysisUnavailableError
from promoscreen.gemini_client import extract_json_text


@pytest.mark.parametrize(
    "raw",
    [
        '{"overallScore": 70}',
        '```json\n{"overallScore": 70}\n```',
        '```\n{"overallScore": 70}```',
        'Here is the analysis:\n{"overallScore": 70}\nThanks!',
    ],
)
def test_extract_json_text(raw):
    assert extract_json_text(raw) == '{"overallScore": 70}'


def test_extract_json_text_leaves_plain_text_alone():
    assert extract_json_text("  no json here ") == "no json here"


async def test_missing_api_key_is_an_upstream_failure(monkeypatch):
    monkeypatch.setattr(config, "GEMINI_API_KEY", None)
    monkeypatch.setattr(gemini_client, "_client", None)

    with pytest.raises(AnalysisUnavailableError):
        await gemini_client.generate_json("prompt", "system")
