"""
Prompt definitions for each generation mode.
A mode bundles the system instruction, the user prompt template, the single
JSON key the model must answer with and the hard length cap for that key.
"""

from dataclasses import dataclass
from typing import Any

MODE_TITLE = "title"
MODE_OPENING = "opening"
MODE_B_PROFILE_LINE = "b_profile_line"

_BASE_RULES = """必ず日本語で出力してください。
個人特定情報（氏名・住所・電話番号・メールアドレス・学籍番号・学生番号・SNS ID等）を出力に含めません。
事実不明の創作はしません（入力テキストにない経験・実績は書かない）。
誇張表現（例：必ず成功、トップレベル等）は避けます。
括弧（「」）や強調記号（**）などの装飾は一切使用しません。
出力は必ずJSONのみで、指定キー以外は出力しません。
半角スペース（ASCIIスペース）を一切出力しないでください。
文章中に不要な空白を入れないでください。
「〇〇さん」「○○さん」などの呼びかけ表現は絶対に使わないでください。名前は特定できないため不要です。"""

TITLE_SYSTEM_INSTRUCTION = "あなたは新卒スカウト文の見出しを作るライターです。\n" + _BASE_RULES

OPENING_SYSTEM_INSTRUCTION = (
    "あなたは新卒スカウト文の「冒頭パート」だけを作るライターです。\n"
    + _BASE_RULES
    + """

【最重要ルール】
「。」（句点）ごとに改行する。
1文＝1行として書く。
冒頭パート全体で100〜150文字程度にする。

【断定表現の禁止・言い換えルール】
- 断定が強すぎる表現は禁止（例：「確信しています」「間違いなく」「必ず」「絶対に」「100%」）
- 推測・印象表現を優先すること（例：「〜と感じました」「〜のように拝見しました」）
- 過度な称賛は禁止（例：「素晴らしい」「感銘を受けました」「圧倒的」「卓越した」）

【重要】
生成するのは冒頭パート（opening_message）のみです。
会社紹介などの固定文はアプリ側で結合します。"""
)

B_PROFILE_SYSTEM_INSTRUCTION = """あなたは新卒スカウト文作成のプロです。
必ず日本語で出力してください。
事実不明の創作は禁止です。
半角スペースは禁止です。
「」や**などの装飾は禁止です。
出力は必ずJSONのみで、指定キー以外は出力しません。"""

TITLE_PROMPT_TEMPLATE = """【タスク】
以下のOfferBox貼り付けテキストを読み、スカウト文の見出し（title）を作成してください。

【要件】
- ちょうど20文字（厳守）
- 末尾は必ず「あなたへ」で終わる
- 学生の特徴を褒める（刺さる）見出しにする
- 「」、** **、半角スペース、絵文字は禁止

【例】
- 支える力が強みのあなたへ
- 周囲を巻き込めるあなたへ
- 挑戦を続ける姿勢のあなたへ

【出力形式】
JSONで {"title":"..."} のみを返してください。

【入力テキスト】
<<<PASTE_TEXT>>>
{paste_text}"""

OPENING_PROMPT_TEMPLATE = """【タスク】
以下のOfferBox貼り付けテキストを読み、スカウト文の「冒頭パート」を作成してください。

【改行ルール（最重要・厳守）】
- 「。」（句点）ごとに改行する
- 1文＝1行として書く
- 「、」では改行しない

【全体の文字数】
- 冒頭パート全体で100〜150文字程度、3〜4文程度

【構成ルール】
- 最終行は必ず「ぜひ一度お話したくご連絡しました！」で終える

【内容ルール】
- 具体エピソードを最低1つ含める
- 冒頭で強みを要約し、その後にエピソードを入れる

【文章トーン】
- 協調型（寄り添い・押し付けない）
- 人柄の断定を避け、推測・印象表現を使う

【禁止事項】
- 「〇〇さん」などの呼びかけ
- 「」** **、絵文字、半角スペース
- 個人特定情報
- 過度な称賛や強すぎる断定

【出力形式】
JSONで {"opening_message":"..."} のみを返してください。
改行は \\n で表現してください。

【入力テキスト】
<<<PASTE_TEXT>>>
{paste_text}"""

B_PROFILE_LINE_PROMPT_TEMPLATE = """以下のスカウト文の「プロフィールを拝見し〜」の1文を、学部名に合わせて具体化してください。

【ルール】
- 出力は1文のみ（差し替え用）
- 形式は必ず以下：
  「プロフィールを拝見し、【学部名】で【一言要約】について学ばれている点に興味を持ち、ご連絡しました。」
- 【一言要約】は学部名から一般的に推測できる範囲で、短く
- 研究内容・経験の断定は禁止
- 過度な称賛は禁止
- トーンは協調型

【学部名】
{faculty_name}

【出力形式】
JSONで {"profile_line":"..."} のみを返してください。"""


@dataclass(frozen=True, slots=True)
class GenerationMode:
    name: str
    system_instruction: str
    prompt_template: str
    response_key: str
    max_chars: int

    def render_prompt(self, **values: str) -> str:
        # str.replace keeps the literal JSON braces in the templates intact
        prompt = self.prompt_template
        for key, value in values.items():
            prompt = prompt.replace("{" + key + "}", value)
        return prompt

    def response_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {self.response_key: {"type": "string"}},
            "required": [self.response_key],
        }


GENERATION_MODES: dict[str, GenerationMode] = {
    MODE_TITLE: GenerationMode(
        name=MODE_TITLE,
        system_instruction=TITLE_SYSTEM_INSTRUCTION,
        prompt_template=TITLE_PROMPT_TEMPLATE,
        response_key="title",
        max_chars=20,
    ),
    MODE_OPENING: GenerationMode(
        name=MODE_OPENING,
        system_instruction=OPENING_SYSTEM_INSTRUCTION,
        prompt_template=OPENING_PROMPT_TEMPLATE,
        response_key="opening_message",
        max_chars=300,
    ),
    MODE_B_PROFILE_LINE: GenerationMode(
        name=MODE_B_PROFILE_LINE,
        system_instruction=B_PROFILE_SYSTEM_INSTRUCTION,
        prompt_template=B_PROFILE_LINE_PROMPT_TEMPLATE,
        response_key="profile_line",
        max_chars=150,
    ),
}
