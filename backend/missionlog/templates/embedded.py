from __future__ import annotations

from missionlog.codec import MalformedEncodingError, decode_base64_to_buffer
from missionlog.rendering.archive import ZipArchiveCodec
from missionlog.rendering.base import ArchiveFormatError


class TemplateUnavailableError(RuntimeError):
    """Raised when not even the embedded template can be produced."""


# Minimal report layout shipped with the application. Used when neither a
# custom template nor the built-in asset can be loaded.
DEFAULT_TEMPLATE_BASE64 = (
    "UEsDBBQAAgAIAAAAIVhueLD/+wAAAC4CAAATAAAAW0NvbnRlbnRfVHlwZXNdLnhtbK2Ru07D"
    "MBSG9z6F5bVKHBgQQnE6cBmBoTzAkX2SWPgmH7c0b4/TlA6owMJo/5fvl91uDs6yPSYywUt+"
    "VTecoVdBGz9I/rZ9qm45owxegw0eJZ+Q+KZbtdspIrES9iT5mHO8E4LUiA6oDhF9UfqQHORy"
    "TIOIoN5hQHHdNDdCBZ/R5yrPHbxrH7CHnc3s8VCulyEJLXF2vxhnluQQozUKctHF3utvlOpE"
    "qEvy6KHRRFoXAxcXCbPyM+CUeykvk4xG9gopP4MrLvERkhY6qJ0ryfr3mgs7Q98bhef83BZT"
    "UEhUntzZ+qw4MH791w7Kk0X6/xVL7xdeHH+7W30CUEsDBBQAAgAIAAAAIVg6SRuAsQAAACsB"
    "AAALAAAAX3JlbHMvLnJlbHONzzsOwjAMBuC9p4i807QMCKGmXRBSV1QOECVuGtE8lIRHb08G"
    "BooYGG3//iw33dPM5I4hamcZ1GUFBK1wUlvF4DKcNnsgMXEr+ewsMlgwQtcWzRlnnvJOnLSP"
    "JCM2MphS8gdKo5jQ8Fg6jzZPRhcMT7kMinourlwh3VbVjoZPA9qVSXrJIPSyBjIsHv+x3Thq"
    "gUcnbgZt+nHiK5FlHhQmBg8XJJXvdplZoG1DVy+2xQtQSwMEFAACAAgAAAAhWIyX12CpAQAA"
    "kAUAABEAAAB3b3JkL2RvY3VtZW50LnhtbL2Uz24bIRDG73kKRC/OoWHdRq678m4OrapWaiwr"
    "cR+A7M7uIrGAYGzXrfruHfC/HBop4tALzMfCbz4YlsXdz1GzLfigrKn49KbgDExjW2X6iv9Y"
    "f3k75yygNK3U1kDF9xD4XX212JWtbTYjGGREMKHcVXxAdKUQoRlglOHGOjD0rbN+lEjS92Jn"
    "feu8bSAESjBq8a4oZmKUyvCakE+23cfepWblU/eIew1sV26lrvhaoQYu6oU4T0hNclEGJxvy"
    "6DwE8Fvg9b0KcWPsAZz1GBdhWuoPgHOuVzBKNsGY/DqP8t02Eg8YfQwzSZ8lAlFa6q4ZWjbp"
    "lFFhiMOZxLUaI5HK7DHGz7FJ52F/vzEWIfx5efU/S/wVZLx909dXeRnT5HmcJIu5GxT/aYOH"
    "6ws+z+ZSpvJ2G61jmLnZlbcdnP4EdxaZtE/Lb4RpjMp1s1pGG+6F/AEaPB59//iLDp5ep+n0"
    "YzHjFA8Uz+bv5/H844R76WkUraPx29siTvGqH/AinyyiHS9aQ/fs60D1BF/xD8U8ys7SpbjI"
    "foNJFsdyn6yJ03MnLk9pffUXUEsDBBQAAgAIAAAAIViZW168rwAAABwBAAAcAAAAd29yZC9f"
    "cmVscy9kb2N1bWVudC54bWwucmVsc43PywrCMBAF0H2/IszepnUhIk27EaFbqR8QkukD8yIT"
    "xf69ATcWXLi8DHPuTNO9rGFPjLR4J6AuK2DolNeLmwTchsvuCIySdFoa71DAigRdWzRXNDLl"
    "HZqXQCwjjgTMKYUT56RmtJJKH9DlyeijlSnHOPEg1V1OyPdVdeDx24B2Y7JeC4i9roENa8B/"
    "bD+Oi8KzVw+LLv2o4JRWk+9ng4wTJgGfXGYHeNvwzU9t8QZQSwMEFAACAAgAAAAhWDAFbPE+"
    "AQAA/gIAAA8AAAB3b3JkL3N0eWxlcy54bWydUkFOwzAQvPcVke/UaZAqFNWtEKiCC3AoD9ja"
    "bmPJsS2vaSivx07SAokqBKdkxjuz40kWq/daZwfpUVnDyGyak0waboUye0ZeN+urG5JhACNA"
    "WyMZOUokq+Vk0ZQYjlpiFvUGy4aRKgRXUoq8kjXg1Dpp4tnO+hpChH5PG+uF85ZLxGhfa1rk"
    "+ZzWoAxZRkNh+b3cwZsOmKB/8T3sUftYWxMwa0pArhQjd6DV1isSmerW4E+G4xekSY0fkT2A"
    "ZqQoEkN7Xzrc5oaoVTvgMXdavgvSx7aKvHdxvct3HR3dqG0sysPRxSYdeNh7cFWKKrqx6JlQ"
    "O/goGHlK7em2HQO1PKXv6W53O/yL/dlwo4KWI7+ObSvaAkrxbMabzp9gO6jyej6o8k+BHiSk"
    "f202ylR1B9nsv7mKC7lOb7icfAJQSwECHgMUAAIACAAAACFYbniw//sAAAAuAgAAEwAAAAAA"
    "AAABAAAApIEAAAAAW0NvbnRlbnRfVHlwZXNdLnhtbFBLAQIeAxQAAgAIAAAAIVg6SRuAsQAA"
    "ACsBAAALAAAAAAAAAAEAAACkgSwBAABfcmVscy8ucmVsc1BLAQIeAxQAAgAIAAAAIViMl9dg"
    "qQEAAJAFAAARAAAAAAAAAAEAAACkgQYCAAB3b3JkL2RvY3VtZW50LnhtbFBLAQIeAxQAAgAI"
    "AAAAIViZW168rwAAABwBAAAcAAAAAAAAAAEAAACkgd4DAAB3b3JkL19yZWxzL2RvY3VtZW50"
    "LnhtbC5yZWxzUEsBAh4DFAACAAgAAAAhWDAFbPE+AQAA/gIAAA8AAAAAAAAAAQAAAKSBxwQA"
    "AHdvcmQvc3R5bGVzLnhtbFBLBQYAAAAABQAFAEABAAAyBgAAAAA="
)


def embedded_template_bytes(encoded: str = DEFAULT_TEMPLATE_BASE64) -> bytes:
    try:
        content = decode_base64_to_buffer(encoded)
    except MalformedEncodingError as exc:
        raise TemplateUnavailableError(f"embedded template is not valid base64: {exc}") from exc
    if not content:
        raise TemplateUnavailableError("embedded template decoded to an empty buffer")
    return content


def verify_embedded_template(encoded: str = DEFAULT_TEMPLATE_BASE64) -> int:
    """Check at startup that the last-resort template opens as a .docx archive.

    Returns the decoded size in bytes.
    """
    content = embedded_template_bytes(encoded)
    try:
        ZipArchiveCodec().open(content)
    except ArchiveFormatError as exc:
        raise TemplateUnavailableError(f"embedded template is not a valid document archive: {exc}") from exc
    return len(content)
