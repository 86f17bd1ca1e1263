"""
Field extractors for pasted recruiting profiles.

Each extractor takes the raw paste and returns a value or None. They never
raise and never depend on one another. Every extractor is an ordered list of
strategies (labelled field first, loose pattern second); the first strategy
that yields a value wins.
"""

import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TypeVar

from scout.models.domain.scout_domain import GENDER_UNKNOWN, ExtractedFields, Gender
from scout.utils.time_utils import parse_jst_wall_clock

T = TypeVar("T")

PREFECTURES: tuple[str, ...] = (
    "北海道", "青森県", "岩手県", "宮城県", "秋田県", "山形県", "福島県",
    "茨城県", "栃木県", "群馬県", "埼玉県", "千葉県", "東京都", "神奈川県",
    "新潟県", "富山県", "石川県", "福井県", "山梨県", "長野県", "岐阜県",
    "静岡県", "愛知県", "三重県", "滋賀県", "京都府", "大阪府", "兵庫県",
    "奈良県", "和歌山県", "鳥取県", "島根県", "岡山県", "広島県", "山口県",
    "徳島県", "香川県", "愛媛県", "高知県", "福岡県", "佐賀県", "長崎県",
    "熊本県", "大分県", "宮崎県", "鹿児島県", "沖縄県",
)

# --- patterns ---------------------------------------------------------------

STUDENT_ID_LABELED = re.compile(r"ID\s*[:：]?\s*([0-9]{7})(?![0-9])", re.IGNORECASE)
# re.ASCII keeps \b on ASCII word boundaries so "学籍1234567番" still counts as isolated
STUDENT_ID_ISOLATED = re.compile(r"\b([0-9]{7})\b", re.ASCII)

_DATETIME = r"([0-9]{4})[/\-]([0-9]{1,2})[/\-]([0-9]{1,2})\s*([0-9]{1,2}):([0-9]{2})"
LAST_LOGIN_LABELED = re.compile(r"(?:最終ログイン日時|最終ログイン|ログイン日時)\s*[:：]?\s*" + _DATETIME)
LAST_LOGIN_ANY = re.compile(_DATETIME)

UNIVERSITY_LABELED = re.compile(r"(?:大学名|学校名)\s*[:：]\s*([^\n\r]+)")
UNIVERSITY_SUFFIX = re.compile(r"(\S+大学)")

FACULTY_LABELED = re.compile(r"学部名?\s*[:：]\s*([^\n\r]+)")
# The run may not contain 大 or 学, so "○○大学経済学部" yields "経済学部", not the university
FACULTY_SUFFIX = re.compile(r"([^\s大学]+学部)")

DEPARTMENT_LABELED = re.compile(r"学科名?\s*[:：]\s*([^\n\r]+)")
DEPARTMENT_SUFFIX = re.compile(r"(\S+学科)")

PREFECTURE_LABELED = re.compile(r"(?:都道府県|出身地|居住地|住所)\s*[:：]\s*([^\n\r]+)")

GRADUATION_FULL_YEAR = re.compile(r"([0-9]{4})年卒")
GRADUATION_SHORT_YEAR = re.compile(r"([0-9]{2})卒")
GRADUATION_LABELED = re.compile(r"卒業(?:予定)?\s*[:：]?\s*([0-9]{4})年")

GENDER_LABELED = re.compile(r"性別\s*[:：]?\s*(男性|女性|その他|男|女)")
GENDER_VALUES: dict[str, Gender] = {
    "男性": "male",
    "男": "male",
    "女性": "female",
    "女": "female",
    "その他": "other",
}


def _first_match(text: str, strategies: Iterable[Callable[[str], T | None]]) -> T | None:
    if not text:
        return None
    for strategy in strategies:
        value = strategy(text)
        if value:
            return value
    return None


def _group(pattern: re.Pattern, index: int = 1) -> Callable[[str], str | None]:
    """Strategy returning a stripped capture group of the first match."""

    def strategy(text: str) -> str | None:
        match = pattern.search(text)
        if not match:
            return None
        return match.group(index).strip() or None

    return strategy


# --- extractors -------------------------------------------------------------


def extract_student_id7(text: str) -> str | None:
    """7-digit student ID: "ID: 1234567" first, then the first isolated 7-digit run."""
    return _first_match(text, (_group(STUDENT_ID_LABELED), _group(STUDENT_ID_ISOLATED)))


def _datetime_strategy(pattern: re.Pattern) -> Callable[[str], datetime | None]:
    def strategy(text: str) -> datetime | None:
        match = pattern.search(text)
        if not match:
            return None
        year, month, day, hour, minute = (int(part) for part in match.groups())
        return parse_jst_wall_clock(year, month, day, hour, minute)

    return strategy


def extract_last_login_at(text: str) -> datetime | None:
    """
    Last login moment.

    Source text always shows Japan-local wall clock time, so the matched value
    is read as UTC+9.
    """
    return _first_match(
        text, (_datetime_strategy(LAST_LOGIN_LABELED), _datetime_strategy(LAST_LOGIN_ANY))
    )


def extract_university_name(text: str) -> str | None:
    return _first_match(text, (_group(UNIVERSITY_LABELED), _group(UNIVERSITY_SUFFIX)))


def extract_faculty_name(text: str) -> str | None:
    return _first_match(text, (_group(FACULTY_LABELED), _group(FACULTY_SUFFIX)))


def extract_department_name(text: str) -> str | None:
    return _first_match(text, (_group(DEPARTMENT_LABELED), _group(DEPARTMENT_SUFFIX)))


def _prefecture_in(value: str) -> str | None:
    for prefecture in PREFECTURES:
        if prefecture in value:
            return prefecture
    return None


def _labeled_prefecture(text: str) -> str | None:
    match = PREFECTURE_LABELED.search(text)
    return _prefecture_in(match.group(1)) if match else None


def extract_prefecture(text: str) -> str | None:
    """One of the 47 prefecture names; list order breaks ties."""
    return _first_match(text, (_labeled_prefecture, _prefecture_in))


def _expand_short_year(text: str) -> str | None:
    match = GRADUATION_SHORT_YEAR.search(text)
    if not match:
        return None
    yy = int(match.group(1))
    return str(2000 + yy if yy <= 50 else 1900 + yy)


def extract_graduation_year(text: str) -> str | None:
    """Graduation year normalised to "NNNN卒" (e.g. 2026年卒, 26卒, 卒業予定: 2026年3月)."""
    year = _first_match(
        text,
        (_group(GRADUATION_FULL_YEAR), _expand_short_year, _group(GRADUATION_LABELED)),
    )
    return f"{year}卒" if year else None


def extract_gender(text: str) -> Gender:
    """Gender from a "性別" field. Missing data is "unknown", never None."""
    if not text:
        return GENDER_UNKNOWN
    match = GENDER_LABELED.search(text)
    if not match:
        return GENDER_UNKNOWN
    return GENDER_VALUES.get(match.group(1), GENDER_UNKNOWN)


def extract_fields(text: str) -> ExtractedFields:
    """Run every extractor over the paste."""
    text = text or ""
    return ExtractedFields(
        student_id7=extract_student_id7(text),
        university_name=extract_university_name(text),
        faculty_name=extract_faculty_name(text),
        department_name=extract_department_name(text),
        prefecture=extract_prefecture(text),
        graduation_year=extract_graduation_year(text),
        gender=extract_gender(text),
        last_login_at=extract_last_login_at(text),
    )
