from __future__ import annotations

from dataclasses import dataclass
import io
import zipfile
import zlib

from missionlog.rendering.base import ArchiveFormatError

DOCX_REQUIRED_ENTRIES = ("[Content_Types].xml", "word/document.xml")


@dataclass
class ArchiveEntry:
    info: zipfile.ZipInfo
    data: bytes


class ZipTemplateArchive:
    """In-memory copy of a zip container that keeps every entry's metadata."""

    def __init__(self, entries: list[ArchiveEntry]) -> None:
        self._entries = entries
        self._index = {entry.info.filename: position for position, entry in enumerate(entries)}

    def names(self) -> list[str]:
        return [entry.info.filename for entry in self._entries]

    def read(self, name: str) -> bytes:
        position = self._index.get(name)
        if position is None:
            raise KeyError(name)
        return self._entries[position].data

    def replace(self, name: str, data: bytes) -> None:
        position = self._index.get(name)
        if position is None:
            raise KeyError(name)
        self._entries[position].data = data

    def entries(self) -> list[ArchiveEntry]:
        return list(self._entries)


def _copy_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    clone = zipfile.ZipInfo(filename=info.filename, date_time=info.date_time)
    clone.compress_type = info.compress_type
    clone.comment = info.comment
    clone.create_system = info.create_system
    clone.external_attr = info.external_attr
    clone.internal_attr = info.internal_attr
    return clone


class ZipArchiveCodec:
    def __init__(self, *, required_entries: tuple[str, ...] = DOCX_REQUIRED_ENTRIES) -> None:
        self.required_entries = required_entries

    def open(self, content: bytes) -> ZipTemplateArchive:
        if not content:
            raise ArchiveFormatError("archive is empty")
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as archive:
                entries = [
                    ArchiveEntry(info=_copy_info(info), data=archive.read(info))
                    for info in archive.infolist()
                ]
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError, RuntimeError, ValueError) as exc:
            raise ArchiveFormatError(f"not a readable zip container: {exc}") from exc

        names = {entry.info.filename for entry in entries}
        missing = [name for name in self.required_entries if name not in names]
        if missing:
            raise ArchiveFormatError(f"archive is missing required entries: {', '.join(missing)}")
        return ZipTemplateArchive(entries)

    def serialize(self, archive: ZipTemplateArchive) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as output:
            for entry in archive.entries():
                output.writestr(_copy_info(entry.info), entry.data)
        return buffer.getvalue()

    def writer(self) -> ArchiveWriter:
        return ArchiveWriter()


class ArchiveWriter:
    """Incrementally assembled deflated zip; entries are compressed as they arrive."""

    def __init__(self) -> None:
        self._buffer = io.BytesIO()
        self._archive: zipfile.ZipFile | None = zipfile.ZipFile(self._buffer, "w", compression=zipfile.ZIP_DEFLATED)
        self._names: list[str] = []

    def __enter__(self) -> ArchiveWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def add(self, name: str, content: bytes) -> None:
        if self._archive is None:
            raise ValueError("archive is already closed")
        self._archive.writestr(name, content)
        self._names.append(name)

    def close(self) -> None:
        if self._archive is not None:
            self._archive.close()
            self._archive = None

    def getvalue(self) -> bytes:
        self.close()
        return self._buffer.getvalue()
