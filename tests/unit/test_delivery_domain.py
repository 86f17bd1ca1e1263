from datetime import UTC, datetime

import pytest

from scout.models.domain.delivery_domain import (
    dump_notes,
    normalize_offer_status,
    offer_status_label,
    parse_notes,
)
from scout.models.domain.scout_domain import gender_label


@pytest.mark.parametrize(
    "value, expected",
    [
        ("none", "none"),
        ("approved", "approved"),
        ("on_hold", "on_hold"),
        ("cancelled", "cancelled"),
        ("offered", "none"),
        ("applied", "approved"),
        ("declined", "cancelled"),
        (" approved ", "approved"),
        ("accepted", None),
        ("", None),
        (None, None),
    ],
)
def test_offer_status_normalization(value, expected):
    assert normalize_offer_status(value) == expected


def test_labels():
    assert offer_status_label("on_hold") == "保留"
    assert offer_status_label(None) == "未処理"
    assert gender_label("unknown") == "不明"
    assert gender_label(None) == "-"


def test_notes_round_trip_and_free_text():
    raw = dump_notes({"faculty_name": "経済学部", "major": "", "prefecture": None})

    assert raw == '{"faculty_name": "経済学部"}'
    assert parse_notes(raw) == {"faculty_name": "経済学部"}
    assert parse_notes("電話済み") == {"memo": "電話済み"}
    assert parse_notes("[1, 2]") == {"memo": "[1, 2]"}
    assert parse_notes(None) == {}
    assert dump_notes({}) is None


def test_status_timestamp_follows_status(delivery_factory):
    moment = datetime(2026, 3, 1, tzinfo=UTC)

    assert delivery_factory(offer_status="on_hold", on_hold_at=moment).status_timestamp() == moment
    assert delivery_factory(offer_status="none").status_timestamp() is None
