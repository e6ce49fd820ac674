"""
Embed normalizer - makes stored post HTML safe and complete for rendering.

Pattern-based, not a full HTML parse. Never raises: anything that does not
match a pattern passes through unchanged.

Passes, in order:
1. Code-block augmentation on the authored markup: each <pre> is wrapped
   with a copy button, a block id and a detected language. Its code text is
   entity-decoded once and re-escaped, so escaped markup inside a sample
   (including "&lt;/pre&gt;") stays part of the sample
2. Entity unescaping (&lt; &gt; &quot; &#x27; &#39;, then &amp; last),
   followed by a second code-block pass for <pre> that only exists once decoded
3. Video URL canonicalization in iframe src (watch/short links -> embed)
4. Iframe attribute completion and explicit </iframe> closing
5. Embed container tidy-up

Already-augmented code blocks are set aside before pass 1 and restored
after pass 5, so normalizing twice gives the same output as once.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from dataclasses import dataclass

# --- Configuration ---


@dataclass(frozen=True)
class EmbedConfig:
    """Iframe defaults filled in when an attribute is missing."""

    allowfullscreen: bool = True
    allow: str = (
        "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"
    )
    width: str = "100%"
    height: str = "400"
    frameborder: str = "0"


DEFAULT_CONFIG = EmbedConfig()


# --- Entity unescaping ---

_ENTITY_STEPS: tuple[tuple[str, str], ...] = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#x27;", "'"),
    ("&#39;", "'"),
    # Must be last so "&amp;lt;" decodes to "&lt;", not "<"
    ("&amp;", "&"),
)


def unescape_entities(text: str) -> str:
    for entity, char in _ENTITY_STEPS:
        text = text.replace(entity, char)
    return text


def escape_code_text(text: str) -> str:
    """Escape code for display inside <code>. Whitespace is left untouched."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attr(text: str) -> str:
    """Escape text for a double-quoted attribute, keeping it on one line."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#x27;")
        .replace("\n", "&#10;")
        .replace("\r", "&#13;")
    )


# --- Video URLs ---

YOUTUBE_PATTERN = re.compile(
    r"(?:youtube\.com/watch\?(?:[^#\s]*?&)?v=|youtu\.be/|youtube\.com/shorts/|youtube\.com/live/)"
    r"([A-Za-z0-9_-]+)",
    re.IGNORECASE,
)
VIMEO_PATTERN = re.compile(r"^(?:https?:)?//(?:www\.)?vimeo\.com/(\d+)", re.IGNORECASE)


def convert_to_embed_url(url: str) -> str:
    """
    Rewrite a video page URL to the host's embed URL.

    Embed URLs and unrecognized hosts are returned unchanged.
    """
    if "youtube.com/embed/" in url.lower():
        return url

    match = YOUTUBE_PATTERN.search(url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"

    match = VIMEO_PATTERN.search(url.strip())
    if match:
        return f"https://player.vimeo.com/video/{match.group(1)}"

    return url


# --- Iframes ---

IFRAME_TAG_PATTERN = re.compile(r"<iframe\b[^>]*>", re.IGNORECASE)
SRC_ATTR_PATTERN = re.compile(r"""((?:^|\s)src\s*=\s*)(["'])(.*?)\2""", re.IGNORECASE | re.DOTALL)

# Opening tag (possibly self-closing) plus, if present before the next
# iframe, its body and closing tag
IFRAME_ELEMENT_PATTERN = re.compile(
    r"<iframe\b([^>]*?)\s*/?>(?:((?:(?!<iframe\b).)*?)</iframe\s*>)?",
    re.IGNORECASE | re.DOTALL,
)


def _rewrite_src(match: re.Match[str]) -> str:
    def _replace(src_match: re.Match[str]) -> str:
        prefix, quote, url = src_match.groups()
        return f"{prefix}{quote}{convert_to_embed_url(url)}{quote}"

    return SRC_ATTR_PATTERN.sub(_replace, match.group(0), count=1)


def _has_attr(attrs: str, name: str) -> bool:
    return re.search(rf"(?:^|\s){name}(?:\s*=|\s|$)", attrs, re.IGNORECASE) is not None


def complete_iframe_attrs(attrs: str, config: EmbedConfig = DEFAULT_CONFIG) -> str:
    """Append missing defaults; existing attributes are never overwritten."""
    if config.allowfullscreen and not _has_attr(attrs, "allowfullscreen"):
        attrs += " allowfullscreen"
    if not _has_attr(attrs, "allow"):
        attrs += f' allow="{config.allow}"'
    if not _has_attr(attrs, "width"):
        attrs += f' width="{config.width}"'
    if not _has_attr(attrs, "height"):
        attrs += f' height="{config.height}"'
    if not _has_attr(attrs, "frameborder"):
        attrs += f' frameborder="{config.frameborder}"'
    return attrs


def normalize_iframes(html: str, config: EmbedConfig = DEFAULT_CONFIG) -> tuple[str, int]:
    """Canonicalize iframe src and complete attributes. Returns (html, iframe count)."""
    html = IFRAME_TAG_PATTERN.sub(_rewrite_src, html)
    count = 0

    def _complete(match: re.Match[str]) -> str:
        nonlocal count
        count += 1
        attrs = complete_iframe_attrs(match.group(1).rstrip(), config)
        body = match.group(2) or ""
        return f"<iframe{attrs}>{body}</iframe>"

    return IFRAME_ELEMENT_PATTERN.sub(_complete, html), count


EMBED_CONTAINER_PATTERN = re.compile(
    r"""<div[^>]*class=["'][^"']*\bembed-container\b[^"']*["'][^>]*>\s*(<iframe[^>]*>.*?</iframe>)\s*</div>""",
    re.IGNORECASE | re.DOTALL,
)
EMBED_WRAPPER_PATTERN = re.compile(
    r"""<div[^>]*class=["']embed-wrapper[^"']*["'][^>]*>\s*(<iframe[^>]*>.*?</iframe>)\s*</div>""",
    re.IGNORECASE | re.DOTALL,
)


def tidy_embed_containers(html: str) -> str:
    html = EMBED_CONTAINER_PATTERN.sub(r'<div class="embed-container">\1</div>', html)
    return EMBED_WRAPPER_PATTERN.sub(r"\1", html)


# --- Code blocks ---

PRE_PATTERN = re.compile(r"<pre\b[^>]*>(.*?)</pre\s*>", re.IGNORECASE | re.DOTALL)
OUTER_CODE_PATTERN = re.compile(
    r"^\s*(<code\b[^>]*>)(.*)</code\s*>\s*$", re.IGNORECASE | re.DOTALL
)
LANGUAGE_HINT_PATTERN = re.compile(
    r"""<code\b[^>]*class=["'][^"']*\blanguage-([\w+#-]+)""", re.IGNORECASE
)
WRAPPED_BLOCK_PATTERN = re.compile(
    r"""<div class=["']code-block-wrapper[^"']*["'] data-code-id=["'][^"']+["']>.*?</pre>\s*</div>""",
    re.IGNORECASE | re.DOTALL,
)

COPY_ICON = (
    '<svg class="code-copy-icon" xmlns="http://www.w3.org/2000/svg" width="16" height="16" '
    'viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">'
    '<rect x="9" y="9" width="13" height="13" rx="2" ry="2"></rect>'
    '<path d="M5 15H4a2 2 0 0 1-2-2V4a2 2 0 0 1 2-2h9a2 2 0 0 1 2 2v1"></path></svg>'
)


def detect_language(code: str) -> str:
    """Best-effort language tag for syntax highlighting; 'text' if nothing matches."""
    lower = code.strip().lower()
    if not lower:
        return "text"

    if (
        re.search(r"^\s*(?:async\s+)?def\s+\w+\s*\(.*\)\s*(?:->.*)?:\s*$", code, re.M)
        or re.search(r"^\s*class\s+\w+\s*(?:\(.*\))?\s*:\s*$", code, re.M)
        or re.search(r"^\s*from\s+[\w.]+\s+import\s+", code, re.M)
        or re.search(r"^\s*import\s+[\w.]+(?:\s+as\s+\w+)?\s*$", code, re.M)
    ):
        return "python"
    if re.search(r"\binterface\s+\w+|:\s*(?:string|number|boolean)\b|\btype\s+\w+\s*=", lower):
        return "typescript"
    if re.search(r"\bfunction\b|\bconst\s|\blet\s|=>|console\.log", lower):
        return "javascript"
    if lower.startswith(("<!doctype", "<html")) or "<div" in lower:
        return "html"
    if "@media" in lower or "@import" in lower:
        return "css"
    if "{" in lower and "}" in lower and ('"' in lower or "'" in lower):
        return "json"
    if "{" in lower and ":" in lower and ";" in lower:
        return "css"

    lines = [line for line in lower.splitlines() if line.strip() and not line.strip().startswith("#")]
    if lines and all(re.match(r"^\s*(?:-\s+)?(?:[\w.-]+:(?:\s|$)|-\s*\S)", line) for line in lines):
        return "yaml"

    return "text"


def _block_id(doc_digest: str, ordinal: int, code: str) -> str:
    digest = hashlib.sha1(f"{doc_digest}:{ordinal}:{code}".encode()).hexdigest()
    return f"code-block-{digest[:9]}"


def render_code_block(block_id: str, code: str, language: str | None = None) -> str:
    language = language or detect_language(code)
    button = (
        f'<button type="button" class="code-copy-btn" data-code-id="{block_id}" '
        f'data-code-content="{escape_attr(code)}" title="Copy code" '
        f'aria-label="Copy code to clipboard">{COPY_ICON}</button>'
    )
    return (
        f'<div class="code-block-wrapper" data-code-id="{block_id}">{button}'
        f'<pre data-code-id="{block_id}"><code class="language-{language}">'
        f"{escape_code_text(code)}</code></pre></div>"
    )


# --- Pipeline ---


class _Vault:
    """Holds finished fragments out of the way of later passes."""

    def __init__(self) -> None:
        self._items: list[str] = []
        self._nonce = secrets.token_hex(8)

    def stash(self, fragment: str) -> str:
        self._items.append(fragment)
        return f"\x00{self._nonce}:{len(self._items) - 1}\x00"

    def restore(self, html: str) -> str:
        pattern = re.compile(rf"\x00{self._nonce}:(\d+)\x00")
        return pattern.sub(lambda m: self._items[int(m.group(1))], html)


def split_code(inner: str) -> tuple[str, str | None]:
    """
    Separate the code text of a <pre> body from its optional <code> wrapper.

    Only the outer <code ...> at the start and </code> at the end are removed;
    <code> tags inside the sample are code text. Returns (code, language hint).
    """
    match = OUTER_CODE_PATTERN.match(inner)
    if not match:
        return inner, None
    hint = LANGUAGE_HINT_PATTERN.match(match.group(1))
    return match.group(2), hint.group(1).lower() if hint else None


def augment_code_blocks(
    html: str,
    vault: _Vault | None = None,
    *,
    decode: bool = False,
    doc_digest: str | None = None,
    start: int = 0,
) -> tuple[str, int]:
    """
    Wrap each <pre> block. Returns (html, number of blocks wrapped).

    With decode=True the code text is entity-decoded once before wrapping,
    for blocks taken from markup that has not been unescaped yet.
    """
    doc_digest = doc_digest or hashlib.sha1(html.encode()).hexdigest()
    count = 0

    def _wrap(match: re.Match[str]) -> str:
        nonlocal count
        code, hint = split_code(match.group(1))
        if decode:
            code = unescape_entities(code)
        fragment = render_code_block(_block_id(doc_digest, start + count, code), code, hint)
        count += 1
        return vault.stash(fragment) if vault is not None else fragment

    return PRE_PATTERN.sub(_wrap, html), count


@dataclass(frozen=True)
class NormalizeResult:
    html: str
    code_blocks: int
    iframes: int


def normalize_html(html: str, config: EmbedConfig = DEFAULT_CONFIG) -> NormalizeResult:
    if not html:
        return NormalizeResult(html=html or "", code_blocks=0, iframes=0)

    vault = _Vault()
    doc_digest = hashlib.sha1(html.encode()).hexdigest()
    processed = WRAPPED_BLOCK_PATTERN.sub(lambda m: vault.stash(m.group(0)), html)

    processed, authored = augment_code_blocks(
        processed, vault, decode=True, doc_digest=doc_digest
    )
    processed = unescape_entities(processed)
    processed, decoded = augment_code_blocks(
        processed, vault, doc_digest=doc_digest, start=authored
    )
    code_blocks = authored + decoded
    processed, iframes = normalize_iframes(processed, config)
    processed = tidy_embed_containers(processed)

    return NormalizeResult(
        html=vault.restore(processed),
        code_blocks=code_blocks,
        iframes=iframes,
    )
