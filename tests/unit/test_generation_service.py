"""
Tests for generation modes and the full scout pipeline (Gemini faked).
"""

import json

import pytest

from scout.services.gemini_client import GeminiError
from scout.services.generation_service import (
    GenerationError,
    GenerationValidationError,
    clean_title,
    compose_scout_message,
    extract_response_value,
    generate,
)
from scout.services.scout.reflow import CLOSING_SENTENCE
from scout.services.scout.templates import DEFAULT_PROFILE_LINE, FIXED_TEXT

OPENING = "周囲を支えながらチームを前に進める力があると感じました。\n高校の球技大会でリーダーを務めた経験が印象的でした。"


def _json(key: str, value: str) -> str:
    return json.dumps({key: value}, ensure_ascii=False)


def test_extract_value_from_json():
    assert extract_response_value(_json("title", "支える力が強みのあなたへ"), "title", 20) == (
        "支える力が強みのあなたへ"
    )


def test_extract_value_by_regex_when_json_is_broken():
    raw = '前置き {"opening_message": "一行目。\\n二行目。"} 後書き'

    assert extract_response_value(raw, "opening_message", 300) == "一行目。\n二行目。"


def test_extract_value_strips_code_fences_and_truncates():
    raw = "```json\n" + "あ" * 30 + "\n```"

    assert extract_response_value(raw, "title", 20) == "あ" * 20


def test_clean_title_removes_ascii_spaces_and_caps_length():
    assert clean_title("支える 力が 強みのあなたへ") == "支える力が強みのあなたへ"
    assert clean_title("い" * 25) == "い" * 20


@pytest.mark.asyncio
async def test_generate_title_builds_request(fake_gemini):
    client = fake_gemini(_json("title", "挑戦を続ける 姿勢のあなたへ"))

    title = await generate("title", paste_text="自己PR\n部活動", client=client)

    assert title == "挑戦を続ける姿勢のあなたへ"
    call = client.calls[0]
    assert "部活動" in call["prompt"]
    assert call["response_schema"]["required"] == ["title"]


@pytest.mark.asyncio
async def test_generate_profile_line_uses_faculty(fake_gemini):
    client = fake_gemini(_json("profile_line", "プロフィールを拝見し、 経済学部で学ばれている点に興味を持ち、ご連絡しました。"))

    line = await generate("b_profile_line", faculty_name="経済学部", client=client)

    assert " " not in line
    assert "経済学部" in client.calls[0]["prompt"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "mode, kwargs",
    [
        ("summary", {"paste_text": "x"}),
        (None, {"paste_text": "x"}),
        ("title", {}),
        ("opening", {"paste_text": "   "}),
        ("b_profile_line", {"paste_text": "x"}),
    ],
)
async def test_generate_rejects_bad_input(fake_gemini, mode, kwargs):
    client = fake_gemini()

    with pytest.raises(GenerationValidationError):
        await generate(mode, client=client, **kwargs)

    assert client.calls == []


@pytest.mark.asyncio
async def test_pattern_a_pipeline(fake_gemini):
    paste = "自己PR\n" + "あ" * 250
    client = fake_gemini(_json("title", "挑戦を続ける姿勢のあなたへ"), _json("opening_message", OPENING))

    result = await compose_scout_message(paste, client=client)

    assert result.pattern == "A"
    assert result.pr_char_count == 250
    assert result.title == "挑戦を続ける姿勢のあなたへ"
    assert result.message.startswith("【挑戦を続ける姿勢のあなたへ】\n\n初めまして。")
    assert result.message.endswith("\n\n" + FIXED_TEXT)
    assert result.body.split("\n")[-1].endswith(CLOSING_SENTENCE)
    assert result.opening_char_count == len(result.body.replace("\n", ""))
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_pattern_b_pipeline_with_faculty(fake_gemini):
    paste = "大学名: 東京大学\n学部: 経済学部\n\nよろしくお願いします"
    line = "プロフィールを拝見し、経済学部で市場について学ばれている点に興味を持ち、ご連絡しました。"
    client = fake_gemini(_json("profile_line", line), _json("opening_message", OPENING))

    result = await compose_scout_message(paste, client=client)

    assert result.pattern == "B"
    assert result.title is None
    assert result.profile_line == line
    assert result.message.startswith("【就活相談OK｜カジュアル面談】")
    assert line in result.message
    assert result.fields.faculty_name == "経済学部"
    assert result.fields.university_name == "東京大学"


@pytest.mark.asyncio
async def test_pattern_b_pipeline_without_faculty_uses_default_line(fake_gemini):
    client = fake_gemini(_json("opening_message", OPENING))

    result = await compose_scout_message("よろしくお願いします", client=client)

    assert result.pattern == "B"
    assert DEFAULT_PROFILE_LINE in result.message
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_profile_line_failure_falls_back_to_default(fake_gemini):
    client = fake_gemini(GeminiError("upstream", status_code=503), _json("opening_message", OPENING))

    result = await compose_scout_message("学部: 文学部\n短い紹介", client=client)

    assert result.profile_line is None
    assert DEFAULT_PROFILE_LINE in result.message


@pytest.mark.asyncio
async def test_empty_title_is_an_error(fake_gemini):
    client = fake_gemini("   ")

    with pytest.raises(GenerationError):
        await compose_scout_message("自己PR\n" + "あ" * 200, client=client)


@pytest.mark.asyncio
async def test_upstream_error_propagates(fake_gemini):
    client = fake_gemini(GeminiError("Gemini API error: 429", status_code=429))

    with pytest.raises(GeminiError) as exc_info:
        await compose_scout_message("よろしくお願いします", client=client)

    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_blank_paste_is_rejected(fake_gemini):
    with pytest.raises(GenerationValidationError):
        await compose_scout_message("  \n ", client=fake_gemini())
