"""
Article Service - writes the full article body from an approved outline
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError

from articlr.errors import ArticleGenerationError, LLMError
from articlr.schemas.responses import Article, Outline
from articlr.services.llm_client import LLMClient, ParseFailure, get_llm_client, parse_json_object

logger = logging.getLogger(__name__)

ARTICLE_FAILED_MESSAGE = "記事本文の生成に失敗しました。"


@dataclass(frozen=True)
class ParsedArticle:
    article: Article


def build_article_prompt(keyword: str, outline: Outline) -> str:
    outline_json = json.dumps(outline.model_dump(), ensure_ascii=False, indent=2)
    return f"""
あなたはSEOに強い家電専門ライターです。
以下の構成をもとに、完全オリジナルの日本語記事を作成してください。

# テーマ
{keyword}

# 構成
{outline_json}

# 出力条件
- 出力形式：JSON
- 構成の階層（H1, H2, H3）を維持したJSONで出力
- 各見出しに対応する本文を生成（最低でも300文字以上）
- 内容は具体的で、独自の視点・根拠・事例を交えて説明且つ信頼感があり、客観的
- 家電販売店にふさわしいフォーマルな文体
- 数値・比較・用途別の提案など、検索ユーザーの満足度を意識
- 製品名・価格は直接記載しない

# 出力フォーマット
{{
  "h1": "タイトル",
  "introduction": "導入文",
  "sections": [
    {{
      "h2": "見出し2",
      "content": "本文（300文字以上）",
      "subsections": [
        {{
          "h3": "見出し3",
          "content": "本文（200文字以上）"
        }}
      ]
    }}
  ],
  "summary": "まとめ文（150〜200文字）"
}}
"""


def parse_article(raw_text: str) -> Union[ParsedArticle, ParseFailure]:
    data = parse_json_object(raw_text)
    if isinstance(data, ParseFailure):
        return data
    try:
        return ParsedArticle(Article.model_validate(data))
    except ValidationError as exc:
        return ParseFailure(f"article has an unexpected shape: {exc.error_count()} errors", raw_text)


class ArticleService:
    """Generates the article body with a single LLM call (no retry)."""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client or get_llm_client()

    async def generate_article(self, keyword: str, outline: Outline) -> Article:
        """
        Raises:
            ArticleGenerationError: transport failure or unparsable reply
        """
        prompt = build_article_prompt(keyword, outline)
        logger.info("Generating article body for %r", keyword)

        try:
            raw_text = await self.llm_client.generate(prompt)
        except LLMError as exc:
            logger.error("Article generation failed: %s", exc)
            raise ArticleGenerationError(ARTICLE_FAILED_MESSAGE) from exc

        parsed = parse_article(raw_text)
        if isinstance(parsed, ParseFailure):
            logger.error("Article generation failed: %s", parsed.reason)
            raise ArticleGenerationError(ARTICLE_FAILED_MESSAGE)

        logger.info("Article generated. Sections: %d", len(parsed.article.sections))
        return parsed.article


def get_article_service() -> ArticleService:
    """Get article service instance"""
    return ArticleService()
