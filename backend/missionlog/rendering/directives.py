from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Mapping

from lxml import etree

from missionlog.rendering.base import (
    ArchiveCodec,
    Delimiters,
    DirectiveSyntaxError,
    require_dependency,
)

WORD_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
XML_NS = "http://www.w3.org/XML/1998/namespace"
_TEXT = f"{{{WORD_NS}}}t"
_PARAGRAPH = f"{{{WORD_NS}}}p"
_BREAK = f"{{{WORD_NS}}}br"
_TABLE_CELL = f"{{{WORD_NS}}}tc"
_SPACE = f"{{{XML_NS}}}space"

TEXT_PART_PATTERN = re.compile(r"^word/(document|header\d*|footer\d*|footnotes|endnotes)\.xml$")
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


@dataclass(frozen=True)
class Tag:
    start: int
    end: int
    raw: str
    kind: str
    key: str
    inverted: bool = False
    conditional: bool = False


def classify_tag(start: int, end: int, raw: str) -> Tag:
    body = raw[1:-1].strip()
    if body.startswith("#") or body.startswith("^"):
        key = body[1:].strip()
        if not key:
            raise DirectiveSyntaxError(f"block tag {raw!r} has no field name")
        return Tag(start, end, raw, "open", key, inverted=body.startswith("^"))
    if body.startswith("/"):
        return Tag(start, end, raw, "close", body[1:].strip())
    if body.startswith("if ") and body[3:].strip():
        return Tag(start, end, raw, "open", body[3:].strip(), conditional=True)
    return Tag(start, end, raw, "inline", body)


def scan_tags(text: str, delimiters: Delimiters, *, offset: int = 0) -> list[Tag]:
    """Find every ``start…end`` directive in one paragraph's text.

    A closing delimiter with no opening one is plain text; an opening delimiter
    that is never closed, or is opened twice, is a syntax error.
    """
    tags: list[Tag] = []
    position = 0
    while True:
        opening = text.find(delimiters.start, position)
        if opening < 0:
            return tags
        closing = text.find(delimiters.end, opening + 1)
        if closing < 0:
            raise DirectiveSyntaxError(f"unclosed tag {text[opening:opening + 40]!r}")
        nested = text.find(delimiters.start, opening + 1, closing)
        if nested >= 0:
            raise DirectiveSyntaxError(f"unclosed tag {text[opening:nested]!r}")
        tags.append(classify_tag(offset + opening, offset + closing + 1, text[opening : closing + 1]))
        position = closing + 1


def pair_blocks(tags: list[Tag]) -> list[tuple[Tag, Tag]]:
    stack: list[Tag] = []
    pairs: list[tuple[Tag, Tag]] = []
    for tag in tags:
        if tag.kind == "open":
            stack.append(tag)
        elif tag.kind == "close":
            if not stack:
                raise DirectiveSyntaxError(f"unopened block {tag.raw!r}")
            opening = stack.pop()
            closes_condition = opening.conditional and tag.key == "if"
            if tag.key and tag.key != opening.key and not closes_condition:
                raise DirectiveSyntaxError(f"block {opening.raw!r} closed by {tag.raw!r}")
            pairs.append((opening, tag))
    if stack:
        raise DirectiveSyntaxError(f"unclosed block {stack[-1].raw!r}")
    pairs.sort(key=lambda pair: pair[0].start)
    return pairs


def _prepare_value(value: object) -> str:
    text = "" if value is None else str(value)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _INVALID_XML_CHARS.sub("", text)


def _is_truthy(tag: Tag, fields: Mapping[str, str]) -> bool:
    present = bool(fields.get(tag.key))
    return not present if tag.inverted else present


class _TextStream:
    """All ``w:t`` nodes of one XML part, addressed as a single string."""

    def __init__(self, root: etree._Element) -> None:
        self.nodes = list(root.iter(_TEXT))
        self.texts = [node.text or "" for node in self.nodes]
        self.paragraphs = [next(node.iterancestors(_PARAGRAPH), None) for node in self.nodes]
        self.offsets: list[int] = []
        self.owner: list[int] = []
        for index, text in enumerate(self.texts):
            self.offsets.append(len(self.owner))
            self.owner.extend([index] * len(text))
        self.text = "".join(self.texts)

    def segments(self) -> list[tuple[int, int]]:
        """Character spans of consecutive nodes that share a paragraph."""
        spans: list[tuple[int, int]] = []
        start_index = 0
        for index in range(1, len(self.nodes) + 1):
            if index < len(self.nodes) and self.paragraphs[index] is self.paragraphs[start_index]:
                continue
            end_index = index - 1
            start = self.offsets[start_index]
            end = self.offsets[end_index] + len(self.texts[end_index])
            if end > start:
                spans.append((start, end))
            start_index = index
        return spans

    def paragraph_of(self, position: int) -> etree._Element | None:
        return self.paragraphs[self.owner[position]]

    def paragraph_text(self, paragraph: etree._Element) -> str:
        return "".join(text for text, owner in zip(self.texts, self.paragraphs) if owner is paragraph)

    def rewrite(self, edits: list[tuple[int, int, str]]) -> list[str]:
        pieces: list[list[str]] = [[] for _ in self.texts]

        def keep(start: int, stop: int) -> None:
            while start < stop:
                index = self.owner[start]
                node_stop = min(stop, self.offsets[index] + len(self.texts[index]))
                base = self.offsets[index]
                pieces[index].append(self.texts[index][start - base : node_stop - base])
                start = node_stop

        cursor = 0
        for start, end, replacement in sorted(edits):
            keep(cursor, start)
            pieces[self.owner[start]].append(replacement)
            cursor = end
        keep(cursor, len(self.owner))
        return ["".join(parts) for parts in pieces]


def _set_text(node: etree._Element, text: str) -> None:
    lines = text.split("\n")
    node.text = lines[0]
    node.set(_SPACE, "preserve")
    anchor = node
    for line in lines[1:]:
        line_break = etree.Element(_BREAK)
        anchor.addnext(line_break)
        continuation = etree.Element(_TEXT)
        continuation.text = line
        continuation.set(_SPACE, "preserve")
        line_break.addnext(continuation)
        anchor = continuation


def _drop_paragraphs(paragraphs: list[etree._Element]) -> None:
    for paragraph in paragraphs:
        parent = paragraph.getparent()
        if parent is None:
            continue
        parent.remove(paragraph)
        # A table cell must keep at least one paragraph.
        if parent.tag == _TABLE_CELL and parent.find(_PARAGRAPH) is None:
            parent.append(etree.Element(_PARAGRAPH))


class DocxDirectiveEngine:
    """Substitutes fixed-name directives inside the text parts of a .docx archive."""

    engine_id = "docx-directives"

    def __init__(self, codec: ArchiveCodec) -> None:
        require_dependency(codec, "archive codec")
        self.codec = codec
        self._parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)

    def apply(self, content: bytes, fields: Mapping[str, str], *, delimiters: Delimiters) -> bytes:
        archive = self.codec.open(content)
        changed = False
        for name in archive.names():
            if not TEXT_PART_PATTERN.match(name):
                continue
            rendered = self.render_part(archive.read(name), fields, delimiters=delimiters, part_name=name)
            if rendered is None:
                continue
            archive.replace(name, rendered)
            changed = True
        if not changed:
            return content
        return self.codec.serialize(archive)

    def render_part(
        self,
        xml: bytes,
        fields: Mapping[str, str],
        *,
        delimiters: Delimiters,
        part_name: str = "part",
    ) -> bytes | None:
        """Render one XML part; returns ``None`` when the part holds no directives."""
        if delimiters.start.encode("utf-8") not in xml:
            return None
        try:
            root = etree.fromstring(xml, self._parser)
        except etree.XMLSyntaxError as exc:
            raise DirectiveSyntaxError(f"{part_name} is not well-formed XML: {exc}") from exc

        stream = _TextStream(root)
        if delimiters.start not in stream.text:
            return None

        tags: list[Tag] = []
        for start, end in stream.segments():
            try:
                tags.extend(scan_tags(stream.text[start:end], delimiters, offset=start))
            except DirectiveSyntaxError as exc:
                raise DirectiveSyntaxError(f"{part_name}: {exc}") from exc
        if not tags:
            return None

        edits, dropped = self._plan(stream, tags, fields)
        if not edits and not dropped:
            return None

        new_texts = stream.rewrite(edits)
        for node, old_text, new_text in zip(stream.nodes, stream.texts, new_texts):
            if new_text != old_text:
                _set_text(node, new_text)
        _drop_paragraphs(dropped)

        return etree.tostring(
            root.getroottree(),
            xml_declaration=True,
            encoding="UTF-8",
            standalone=True,
        )

    def _plan(
        self,
        stream: _TextStream,
        tags: list[Tag],
        fields: Mapping[str, str],
    ) -> tuple[list[tuple[int, int, str]], list[etree._Element]]:
        edits: list[tuple[int, int, str]] = []
        removed: list[tuple[int, int]] = []
        dropped: list[etree._Element] = []
        dropped_ids: set[int] = set()

        def covered(position: int) -> bool:
            return any(start <= position < end for start, end in removed)

        def drop(paragraph: etree._Element) -> None:
            if id(paragraph) not in dropped_ids:
                dropped_ids.add(id(paragraph))
                dropped.append(paragraph)

        def alone(tag: Tag, paragraph: etree._Element | None) -> bool:
            return paragraph is not None and stream.paragraph_text(paragraph).strip() == tag.raw

        for opening, closing in pair_blocks(tags):
            if covered(opening.start):
                continue
            open_paragraph = stream.paragraph_of(opening.start)
            close_paragraph = stream.paragraph_of(closing.start)
            same_level = (
                open_paragraph is not None
                and close_paragraph is not None
                and open_paragraph is not close_paragraph
                and open_paragraph.getparent() is close_paragraph.getparent()
            )
            between: list[etree._Element] = []
            if same_level:
                siblings = list(open_paragraph.getparent())
                first = siblings.index(open_paragraph)
                last = siblings.index(close_paragraph)
                between = siblings[first + 1 : last]
            paragraph_mode = same_level and alone(opening, open_paragraph) and alone(closing, close_paragraph)

            if _is_truthy(opening, fields):
                if paragraph_mode:
                    drop(open_paragraph)
                    drop(close_paragraph)
                else:
                    edits.append((opening.start, opening.end, ""))
                    edits.append((closing.start, closing.end, ""))
                continue

            removed.append((opening.start, closing.end))
            if paragraph_mode:
                drop(open_paragraph)
                for element in between:
                    drop(element)
                drop(close_paragraph)
            else:
                edits.append((opening.start, closing.end, ""))
                for element in between:
                    drop(element)

        for tag in tags:
            if tag.kind != "inline" or covered(tag.start):
                continue
            if tag.key not in fields:
                # Unknown fields stay in the document verbatim.
                continue
            edits.append((tag.start, tag.end, _prepare_value(fields[tag.key])))

        return edits, dropped
