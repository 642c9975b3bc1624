"""
Content Translator - Turns source markup into stored note HTML.

ENML is rewritten with string-level substitutions, not a DOM pass, so
markup that a strict XML parser rejects still translates.
"""

import html
import re
from collections.abc import Mapping

from noteport.models.export import ContentFormat
from noteport.services.resource_resolver import StoredResource

_XML_DECLARATION = re.compile(r"<\?xml.*?\?>", re.IGNORECASE | re.DOTALL)
_DOCTYPE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_EN_NOTE_OPEN = re.compile(r"<en-note([^>]*)>", re.IGNORECASE)
_EN_NOTE_CLOSE = re.compile(r"</en-note\s*>", re.IGNORECASE)
_EN_MEDIA = re.compile(r"<en-media\b([^>]*?)\s*(?:/>|>\s*</en-media\s*>|>)", re.IGNORECASE)
_EN_TODO = re.compile(r"<en-todo\b([^>]*?)\s*/?>(?:\s*</en-todo\s*>)?", re.IGNORECASE)
_EN_CRYPT = re.compile(r"<en-crypt\b[^>]*>.*?</en-crypt\s*>", re.IGNORECASE | re.DOTALL)
_ATTRIBUTE = re.compile(r"([a-zA-Z_:][\w:.-]*)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")

PROHIBITED_ELEMENTS = (
    "script",
    "style",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "form",
    "button",
)
_PROHIBITED_BLOCKS = [
    re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.IGNORECASE | re.DOTALL)
    for tag in PROHIBITED_ELEMENTS
]
_PROHIBITED_TAGS = [
    re.compile(rf"</?{tag}\b[^>]*>", re.IGNORECASE) for tag in PROHIBITED_ELEMENTS
]
_SUBMIT_INPUT = re.compile(
    r"<input\b[^>]*\btype\s*=\s*[\"']?(?:submit|button|reset)[\"']?[^>]*>", re.IGNORECASE
)

_EVENT_HANDLER = re.compile(r"\s+on\w+\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]+)", re.IGNORECASE)
_SCRIPT_HREF = re.compile(r"href\s*=\s*([\"'])\s*(?:javascript|data):[^\"']*\1", re.IGNORECASE)
_SCRIPT_SRC = re.compile(r"\s*src\s*=\s*([\"'])\s*javascript:[^\"']*\1", re.IGNORECASE)

_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")

ENCRYPTED_PLACEHOLDER = '<div class="en-crypt-placeholder">[Encrypted content - not imported]</div>'


def _parse_attributes(raw: str) -> dict[str, str]:
    return {
        match.group(1).lower(): match.group(2) if match.group(2) is not None else match.group(3)
        for match in _ATTRIBUTE.finditer(raw)
    }


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


class ContentTranslator:
    """
    Rewrites note markup into stored HTML and derives plaintext.

    Both operations are pure: the same input always yields the same output.
    """

    def translate(
        self,
        raw_content: str,
        resources: Mapping[str, StoredResource],
        content_format: ContentFormat = ContentFormat.ENML,
    ) -> str:
        """
        Translate raw note content.

        Args:
            raw_content: ENML document or HTML fragment
            resources: Content hash -> stored resource for this note
            content_format: Dialect of raw_content

        Returns:
            Sanitized HTML whose media references point at stored locators
        """
        content = raw_content or ""

        if content_format == ContentFormat.ENML:
            content = _XML_DECLARATION.sub("", content)
            content = _DOCTYPE.sub("", content)
            content = _EN_NOTE_OPEN.sub(r'<div class="en-note"\1>', content)
            content = _EN_NOTE_CLOSE.sub("</div>", content)
            content = _EN_MEDIA.sub(lambda m: self._render_media(m.group(1), resources), content)
            content = _EN_TODO.sub(lambda m: self._render_todo(m.group(1)), content)
            content = _EN_CRYPT.sub(ENCRYPTED_PLACEHOLDER, content)

        content = self._remove_prohibited(content)
        content = self._sanitize(content)
        return content.strip()

    def plaintext(self, content: str) -> str:
        """
        Derive the search projection of translated content.

        Tags become spaces, entities are decoded and whitespace runs collapse
        to a single space.
        """
        text = _TAG.sub(" ", content or "")
        text = html.unescape(text)
        return _WHITESPACE.sub(" ", text).strip()

    # ═══════════════════════════════════════════════════════════
    # ENML ELEMENTS
    # ═══════════════════════════════════════════════════════════

    def _render_media(self, raw_attributes: str, resources: Mapping[str, StoredResource]) -> str:
        attributes = _parse_attributes(raw_attributes)
        content_hash = attributes.get("hash", "").strip().lower()
        alt = attributes.get("alt") or "Attachment"

        entry = resources.get(content_hash)
        mime_type = attributes.get("type") or (entry.mime_type if entry else "application/octet-stream")

        if entry is None:
            return (
                f'<div class="en-media-placeholder" data-hash="{_attr(content_hash)}" '
                f'data-type="{_attr(mime_type)}">[Attachment: {html.escape(alt)}]</div>'
            )

        url = _attr(entry.locator)
        size_attrs = "".join(
            f' {name}="{_attr(attributes[name])}"'
            for name in ("width", "height")
            if attributes.get(name, "").isdigit()
        )

        if mime_type.startswith("image/"):
            return (
                f'<img src="{url}" alt="{_attr(alt)}"{size_attrs} '
                f'class="en-media en-media-image" loading="lazy" />'
            )

        if mime_type.startswith("audio/"):
            return (
                f'<audio controls class="en-media en-media-audio">'
                f'<source src="{url}" type="{_attr(mime_type)}" /></audio>'
            )

        if mime_type.startswith("video/"):
            return (
                f'<video controls{size_attrs} class="en-media en-media-video">'
                f'<source src="{url}" type="{_attr(mime_type)}" /></video>'
            )

        label = entry.original_filename or entry.filename
        css_class = "en-media-pdf" if mime_type == "application/pdf" else "en-media-attachment"
        return (
            f'<a href="{url}" target="_blank" class="en-media {css_class}" '
            f'download="{_attr(label)}">{html.escape(label)}</a>'
        )

    def _render_todo(self, raw_attributes: str) -> str:
        checked = _parse_attributes(raw_attributes).get("checked", "").lower() == "true"
        state = "checked disabled" if checked else "disabled"
        return f'<input type="checkbox" class="en-todo" {state} />'

    # ═══════════════════════════════════════════════════════════
    # SANITIZATION
    # ═══════════════════════════════════════════════════════════

    def _remove_prohibited(self, content: str) -> str:
        for block, tag in zip(_PROHIBITED_BLOCKS, _PROHIBITED_TAGS):
            content = block.sub("", content)
            content = tag.sub("", content)
        return _SUBMIT_INPUT.sub("", content)

    def _sanitize(self, content: str) -> str:
        # Attribute rewrites apply inside tags only; text nodes are left as is
        return _TAG.sub(lambda m: self._sanitize_tag(m.group(0)), content)

    def _sanitize_tag(self, tag: str) -> str:
        tag = _EVENT_HANDLER.sub("", tag)
        tag = _SCRIPT_HREF.sub('href="#"', tag)
        return _SCRIPT_SRC.sub("", tag)
