"""
Message templates and final assembly.

Greeting blocks differ per pattern; the company block that follows the opening
paragraph is identical in every message and is appended verbatim, never
reflowed.
"""

from scout.models.domain.scout_domain import PATTERN_A, Pattern

SENDER_LINES = "初めまして。\nスタートライン新卒採用責任者の船戸です。"

GREETING_A_TEMPLATE = "【{title}】\n\n" + SENDER_LINES

PROFILE_LINE_PLACEHOLDER = "{profile_line}"

GREETING_B_TEMPLATE = (
    "【就活相談OK｜カジュアル面談】\n\n"
    + SENDER_LINES
    + "\n\n"
    + PROFILE_LINE_PLACEHOLDER
    + "\n\n就活でこんな気持ちになることありませんか？"
)

DEFAULT_PROFILE_LINE = "プロフィールを拝見し、ご連絡しました。"

# Copied character for character into every message (full-width symbols included).
FIXED_TEXT = """◆＼当社の事業は一言で言うと…／
「人と企業のつなぐHRソリューション企業」
（架け橋となり、採用～定着～活躍を支援）

この仕事の面白さは、人の強みを見つけ、
個性を生かした、活躍の場をつくれること。

◆こんな気持ちが大切です。
---------------------------
・成長をサポートしたい
・「ありがとう」がやりがい
・誰かの可能性を広げたい
---------------------------

1つでも当てはまったら
当社の仕事は向いています！

是非、カジュアル面談にて
ざっくばらんにお話できれば嬉しいです！

承諾＝応募ではありません
就活相談だけでも歓迎です。
※希望する方には会社説明会をご案内(WEB)


◆＼働きやすさも整っています／
---------------------------
・土日祝休み／年休120日以上
・残業20時間以下／ＷＬＢ◎
・ジョブローテーション制度有
※数年で本社勤務など実績多数あり
---------------------------

お話できるのを楽しみにしています！

株式会社スタートライン
新卒採用責任者　船戸"""

PARAGRAPH_BREAK = "\n\n"


def build_greeting_a(title: str) -> str:
    """Greeting for pattern A; ``title`` is shown inside 【】 on the first line."""
    return GREETING_A_TEMPLATE.replace("{title}", title)


def build_greeting_b(profile_line: str | None = None) -> str:
    """Greeting for pattern B with one optional generated sentence about the student."""
    line = (profile_line or "").strip() or DEFAULT_PROFILE_LINE
    return GREETING_B_TEMPLATE.replace(PROFILE_LINE_PLACEHOLDER, line)


def build_greeting(pattern: Pattern, title: str | None = None, profile_line: str | None = None) -> str:
    if pattern == PATTERN_A:
        if not title:
            raise ValueError("pattern A greeting requires a title")
        return build_greeting_a(title)
    return build_greeting_b(profile_line)


def assemble(greeting: str, body: str, fixed_closing: str = FIXED_TEXT) -> str:
    """
    Join greeting, reflowed opening and the fixed company block.

    ``fixed_closing`` is appended untouched.
    """
    return greeting + PARAGRAPH_BREAK + body + PARAGRAPH_BREAK + fixed_closing
