"""Shared fakes: no test touches the network or launches a browser."""
import json
from typing import Dict, List, Optional

import pytest


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {"Content-Type": "text/html; charset=utf-8"}


class FakeSession:
    """Stands in for a retrying requests.Session; maps URL -> FakeResponse or exception."""

    def __init__(self, routes: Dict[str, object], calls: List[str]):
        self.routes = routes
        self.calls = calls

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def get(self, url, timeout=None):
        self.calls.append(url)
        outcome = self.routes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class ScriptedStrategy:
    """Fetch strategy returning canned text or raising canned errors per URL."""

    def __init__(self, name: str, outcomes: Dict[str, object]):
        self.name = name
        self.outcomes = outcomes
        self.calls: List[str] = []

    async def attempt(self, url: str) -> str:
        self.calls.append(url)
        outcome = self.outcomes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeLLMClient:
    """Returns queued replies in order and records every prompt."""

    def __init__(self, replies: List[object]):
        self.replies = list(replies)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


OUTLINE_PAYLOAD = {
    "h1": "空気清浄機の選び方ガイド",
    "sections": [
        {"h2": "空気清浄機の基本", "subsections": ["仕組み", "フィルターの種類", "適用床面積"]},
        {"h2": "選び方のポイント", "subsections": ["部屋の広さ", "運転音", "電気代"]},
        {"h2": "お手入れと長持ちのコツ", "subsections": ["フィルター掃除", "設置場所", "交換時期"]},
    ],
}

ARTICLE_PAYLOAD = {
    "h1": "空気清浄機の選び方ガイド",
    "introduction": "導入文です。",
    "sections": [
        {
            "h2": section["h2"],
            "content": f"{section['h2']}の本文",
            "subsections": [{"h3": title, "content": f"{title}の本文"} for title in section["subsections"]],
        }
        for section in OUTLINE_PAYLOAD["sections"]
    ],
    "summary": "まとめです。",
}


def fenced(payload: dict) -> str:
    return "```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"


@pytest.fixture
def outline_reply() -> str:
    return fenced(OUTLINE_PAYLOAD)


@pytest.fixture
def article_reply() -> str:
    return fenced(ARTICLE_PAYLOAD)
