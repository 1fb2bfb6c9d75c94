"""
Outline Service - builds the H1/H2/H3 structure from competitor articles
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from articlr.errors import LLMError, OutlineGenerationError
from articlr.schemas.responses import Outline
from articlr.services.llm_client import LLMClient, ParseFailure, get_llm_client, parse_json_object

logger = logging.getLogger(__name__)

OUTLINE_FAILED_MESSAGE = "記事構成の生成に失敗しました。"

SOURCE_SEPARATOR = "\n---\n"


@dataclass(frozen=True)
class ParsedOutline:
    outline: Outline


def format_sources(sources: Sequence[Tuple[str, str]]) -> str:
    """Label each (url, text) pair and join them into one reference block."""
    return SOURCE_SEPARATOR.join(f"【Source】{url}\n{text}" for url, text in sources)


def build_outline_prompt(keyword: str, sources: Sequence[Tuple[str, str]]) -> str:
    return f"""
あなたはSEOに強い家電専門ライターです。
以下の競合記事を分析し、キーワード「{keyword}」の記事構成案を作成してください。

# 出力条件
- JSON形式で出力
- 形式:
{{
  "h1": "タイトル案",
  "sections": [
    {{
      "h2": "見出し2",
      "subsections": ["見出し3-1", "見出し3-2", "見出し3-3"]
    }}
  ]
}}
- H2は3つ、各H2に対してH3を3つ作成
- キーワードとの関連性が高く、検索ユーザーの意図を満たす構成にする
- 内容は具体的で、独自の視点・根拠・事例を交えて説明且つ信頼感があり、客観的
- 家電販売店にふさわしいフォーマルな文体
- 数値・比較・用途別の提案など、検索ユーザーの満足度を意識
- 製品名・価格は直接記載しない
- 出力は厳密にJSONのみ

# 参考記事
{format_sources(sources)}
"""


def parse_outline(raw_text: str) -> Union[ParsedOutline, ParseFailure]:
    data = parse_json_object(raw_text)
    if isinstance(data, ParseFailure):
        return data
    try:
        return ParsedOutline(Outline.model_validate(data))
    except ValidationError as exc:
        return ParseFailure(f"outline has an unexpected shape: {exc.error_count()} errors", raw_text)


class OutlineService:
    """Generates the article outline with a single LLM call (no retry)."""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client or get_llm_client()

    async def generate_outline(self, keyword: str, sources: Sequence[Tuple[str, str]]) -> Outline:
        """
        Generate the outline for ``keyword`` from (url, text) source pairs.

        Raises:
            OutlineGenerationError: transport failure or unparsable reply
        """
        prompt = build_outline_prompt(keyword, sources)
        logger.info("Generating outline for %r from %d sources", keyword, len(sources))

        try:
            raw_text = await self.llm_client.generate(prompt)
        except LLMError as exc:
            logger.error("Outline generation failed: %s", exc)
            raise OutlineGenerationError(OUTLINE_FAILED_MESSAGE) from exc

        parsed = parse_outline(raw_text)
        if isinstance(parsed, ParseFailure):
            logger.error("Outline generation failed: %s", parsed.reason)
            raise OutlineGenerationError(OUTLINE_FAILED_MESSAGE)

        logger.info("Outline generated. H2 count: %d", len(parsed.outline.sections))
        return parsed.outline


def get_outline_service() -> OutlineService:
    """Get outline service instance"""
    return OutlineService()
