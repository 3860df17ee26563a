from __future__ import annotations

from dataclasses import dataclass, field
import io
import re

from missionlog.models import RENDER_FIELD_KEYS

_BLOCK_DIRECTIVE_PATTERN = re.compile(r"\{([^{}]*)\}")
_INLINE_DIRECTIVE_PATTERN = re.compile(r"\(([^()]*)\)")
_BLOCK_PREFIXES = ("#", "^", "/")


@dataclass(frozen=True)
class TemplateInspection:
    directives: list[str] = field(default_factory=list)
    unknown_fields: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def readable(self) -> bool:
        return self.error is None


def _directive_key(body: str) -> str | None:
    text = body.strip()
    if text.startswith("/"):
        return None
    if text.startswith(_BLOCK_PREFIXES):
        return text[1:].strip()
    if text.startswith("if "):
        return text[3:].strip()
    return text


def _document_lines(content: bytes) -> list[str]:
    from docx import Document

    document = Document(io.BytesIO(content))
    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                lines.append(cell.text)
    for section in document.sections:
        lines.extend(paragraph.text for paragraph in section.header.paragraphs)
        lines.extend(paragraph.text for paragraph in section.footer.paragraphs)
    return lines


def inspect_template(content: bytes) -> TemplateInspection:
    """List the directives an uploaded template uses, without rendering it.

    Unknown fields are keys that no mission or profile value will fill; they
    render as their literal text.
    """
    try:
        lines = _document_lines(content)
    except Exception as exc:
        return TemplateInspection(error=f"docx inspection failed: {exc}")

    directives: list[str] = []
    unknown: list[str] = []
    known = set(RENDER_FIELD_KEYS)
    for line in lines:
        for pattern, opener, closer in (
            (_BLOCK_DIRECTIVE_PATTERN, "{", "}"),
            (_INLINE_DIRECTIVE_PATTERN, "(", ")"),
        ):
            for match in pattern.finditer(line):
                raw = f"{opener}{match.group(1)}{closer}"
                if raw not in directives:
                    directives.append(raw)
                key = _directive_key(match.group(1))
                if key and key not in known and key not in unknown:
                    unknown.append(key)
    return TemplateInspection(directives=directives, unknown_fields=unknown)
