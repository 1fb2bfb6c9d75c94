"""
Charset detection for raw HTML responses.

Priority: Content-Type header, then <meta charset>, then
<meta http-equiv content="...; charset=...">, then UTF-8.
"""
import logging
import re
from typing import Mapping, NamedTuple, Optional

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"
SNIFF_BYTES = 2048

# Pages labelled Shift_JIS routinely use the NEC/IBM extensions (①, ㈱), which only cp932 maps
ENCODING_ALIASES = {
    "sjis": "cp932",
    "x-sjis": "cp932",
    "shift-jis": "cp932",
    "shift_jis": "cp932",
    "windows-31j": "cp932",
    "euc-jp": "euc-jp",
    "eucjp": "euc-jp",
    "x-euc-jp": "euc-jp",
}

_HEADER_CHARSET_RE = re.compile(r"charset\s*=\s*([^;]+)", re.I)
_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.I)
_ATTR_RE = re.compile(r"""([a-zA-Z_:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""")
_CONTENT_CHARSET_RE = re.compile(r"charset\s*=\s*([^\s;\"']+)", re.I)


class EncodingDecision(NamedTuple):
    encoding_name: str
    source: str  # "header" | "meta-charset" | "meta-content" | "default"


def _header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _meta_attributes(tag: str) -> dict:
    attrs = {}
    for match in _ATTR_RE.finditer(tag):
        value = next(v for v in match.group(2, 3, 4) if v is not None)
        attrs[match.group(1).lower()] = value
    return attrs


def _sniff_meta(head: str) -> Optional[EncodingDecision]:
    tags = [_meta_attributes(tag) for tag in _META_TAG_RE.findall(head)]

    for attrs in tags:
        charset = attrs.get("charset", "").strip()
        if charset:
            return EncodingDecision(charset, "meta-charset")

    for attrs in tags:
        match = _CONTENT_CHARSET_RE.search(attrs.get("content", ""))
        if match:
            return EncodingDecision(match.group(1), "meta-content")

    return None


def normalize_encoding(name: str) -> Optional[str]:
    """Map an advertised charset onto a codec Python knows, or None."""
    cleaned = name.strip().strip("\"'").lower()
    if not cleaned:
        return None
    cleaned = ENCODING_ALIASES.get(cleaned, cleaned)
    try:
        # bytes.decode rejects non-text codecs (base64, rot13) as well as unknown names
        b"".decode(cleaned)
    except LookupError:
        return None
    return cleaned


def resolve_encoding(body: bytes, headers: Mapping[str, str]) -> EncodingDecision:
    """Pick the encoding for ``body``. Never raises."""
    candidate: Optional[EncodingDecision] = None

    content_type = _header_value(headers or {}, "content-type")
    if content_type:
        match = _HEADER_CHARSET_RE.search(content_type)
        if match:
            candidate = EncodingDecision(match.group(1), "header")

    if candidate is None:
        head = body[:SNIFF_BYTES].decode("latin-1")
        candidate = _sniff_meta(head)

    if candidate is not None:
        normalized = normalize_encoding(candidate.encoding_name)
        if normalized:
            return EncodingDecision(normalized, candidate.source)
        logger.debug("Unsupported charset %r from %s", candidate.encoding_name, candidate.source)

    return EncodingDecision(DEFAULT_ENCODING, "default")


def decode_html(body: bytes, headers: Mapping[str, str]) -> str:
    """Decode an HTML response body using the resolved encoding."""
    decision = resolve_encoding(body, headers)
    logger.info("Detected encoding: %s (%s)", decision.encoding_name, decision.source)
    return body.decode(decision.encoding_name, errors="replace")
