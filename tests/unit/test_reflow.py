"""
Tests for opening-paragraph reflow.
"""

import pytest

from scout.services.scout.reflow import (
    CLOSING_SENTENCE,
    ReflowPolicy,
    ensure_closing,
    normalize_text,
    reflow_opening_message,
    split_sentences,
)
from scout.services.scout.templates import FIXED_TEXT, PARAGRAPH_BREAK, assemble


def test_short_text_without_period_becomes_one_line():
    result = reflow_opening_message("挑戦を続ける姿勢が印象的でした")

    assert result == "挑戦を続ける姿勢が印象的でした。" + CLOSING_SENTENCE
    assert "\n" not in result


@pytest.mark.parametrize(
    "raw",
    [
        "挑戦を続ける姿勢と周囲を巻き込む力が印象的でした",
        "う" * 33,
    ],
)
def test_unpunctuated_text_within_width_stays_on_one_line(raw):
    result = reflow_opening_message(raw)

    assert result == raw + "。" + CLOSING_SENTENCE


def test_unpunctuated_text_at_full_width_is_wrapped():
    result = reflow_opening_message("う" * 34)

    lines = result.split("\n")
    assert len(lines) > 1
    assert lines[-1].endswith(CLOSING_SENTENCE)


def test_normalize_strips_spaces_and_newlines():
    assert normalize_text("a b\r\nc\td　　　e\n") == "abcd　e"


def test_ensure_closing_keeps_only_last_occurrence():
    text = f"前半。{CLOSING_SENTENCE}後半。{CLOSING_SENTENCE}余計な文"

    assert ensure_closing(text) == "前半。後半。" + CLOSING_SENTENCE


def test_ensure_closing_respects_existing_terminal_mark():
    assert ensure_closing("ありがとうございます！") == "ありがとうございます！" + CLOSING_SENTENCE
    assert ensure_closing("") == CLOSING_SENTENCE


def test_split_sentences_keeps_delimiter():
    assert split_sentences("一つ目。二つ目。三つ目") == ["一つ目。", "二つ目。", "三つ目"]


def test_long_sentence_is_cut_on_comma():
    sentence = "あ" * 24 + "、" + "い" * 24 + "。"

    lines = reflow_opening_message(sentence).split("\n")

    assert lines == ["あ" * 24 + "、", "い" * 24 + "。", CLOSING_SENTENCE]


def test_long_sentence_without_comma_is_cut_on_particle():
    sentence = "あ" * 20 + "が" + "い" * 20 + "。"

    lines = reflow_opening_message(sentence).split("\n")

    assert lines[0] == "あ" * 20 + "が"
    assert lines[1] == "い" * 20 + "。"
    assert lines[-1] == CLOSING_SENTENCE


def test_hard_cut_as_last_resort():
    sentence = "あ" * 80 + "。"

    lines = reflow_opening_message(sentence).split("\n")

    assert lines == ["あ" * 34, "あ" * 34, "あ" * 12 + "。" + CLOSING_SENTENCE]


@pytest.mark.parametrize("sentence_count", [1, 3, 6, 8, 12])
def test_closing_once_on_last_line_and_line_cap(sentence_count):
    raw = "\n".join("あ" * 19 + "。" for _ in range(sentence_count))
    raw += "\n" + CLOSING_SENTENCE + "\n"

    lines = reflow_opening_message(raw).split("\n")

    assert len(lines) <= 6
    assert lines[-1].endswith(CLOSING_SENTENCE)
    assert "".join(lines).count(CLOSING_SENTENCE) == 1


def test_short_lines_are_merged_into_neighbours():
    raw = "はい。" + "う" * 33 + "。"

    lines = reflow_opening_message(raw).split("\n")

    assert lines == ["はい。" + "う" * 33 + "。", CLOSING_SENTENCE]


def test_custom_policy_line_cap():
    policy = ReflowPolicy(max_chars=20, max_lines=3)
    raw = "".join("え" * 15 + "。" for _ in range(6))

    lines = reflow_opening_message(raw, policy=policy).split("\n")

    assert len(lines) <= 3
    assert lines[-1].endswith(CLOSING_SENTENCE)


def test_empty_input_yields_closing_only():
    assert reflow_opening_message("") == CLOSING_SENTENCE


def test_fixed_block_survives_assembly_verbatim():
    body = reflow_opening_message("あ" * 40 + "。" + "い" * 40 + "。")

    message = assemble("挨拶", body)

    assert message.endswith(PARAGRAPH_BREAK + FIXED_TEXT)
    tail = message[len(message) - len(FIXED_TEXT) :]
    assert tail.encode("utf-8") == FIXED_TEXT.encode("utf-8")
    assert tail.startswith("◆＼当社の事業は一言で言うと…／")
    assert tail.endswith("新卒採用責任者　船戸")
