"""Shared helpers for line-oriented text codecs.

Hash lists, pot files, modular crypt lists and combo lists are all "one
record per line, fields split on colons". These helpers handle decoding,
line splitting, the URL-aware colon split, and assembling rendered lines.
"""

from __future__ import annotations

from typing import Callable, List

from ptv.core.errors import ZeroRecoverableError
from ptv.core.ir import Record


def decode_lines(raw: bytes) -> List[str]:
    """Decode ``raw`` and split it into lines.

    UTF-8 is tried first; input that is not valid UTF-8 is decoded as
    Latin-1, which maps every byte to one character so nothing is lost.
    CRLF endings are accepted and trailing empty lines are dropped.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = raw.decode("latin-1")
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.replace("\r\n", "\n").split("\n")
    while lines and lines[-1] == "":
        lines.pop()
    return lines


def split_combo_fields(line: str) -> List[str]:
    """Split a colon-delimited line, keeping URL schemes intact.

    ``user:pass:https://example.com/login`` yields three fields, not four:
    a part followed by one starting with ``//`` is rejoined with it.
    """
    raw = line.split(":")
    fields: List[str] = []
    index = 0
    while index < len(raw):
        if index + 1 < len(raw) and raw[index + 1].startswith("//"):
            fields.append(raw[index] + ":" + raw[index + 1])
            index += 2
        else:
            fields.append(raw[index])
            index += 1
    return fields


def line_encoder(format_line: Callable[[Record], str]) -> Callable[[Record], bytes]:
    """Wrap a record-to-line function so each line ends with a newline."""

    def encode(record: Record) -> bytes:
        return (format_line(record) + "\n").encode("utf-8")

    return encode


def require_records(codec_name: str, records: list) -> None:
    if not records:
        raise ZeroRecoverableError("{}: no usable lines found".format(codec_name))
