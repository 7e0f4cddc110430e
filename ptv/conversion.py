"""One-shot conversion between two registered formats.

WHY: The CLI and the HTTP endpoint do the same thing: look up two codecs,
parse with one, render with the other. Doing it in one function keeps the
error mapping identical across both surfaces.

RULES:
- Both names are looked up before either is checked, so the error cannot
  reveal which of the two was missing
- Parse and render errors propagate unchanged (ParseError / RenderError)
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from ptv import codecs
from ptv.core.errors import UnknownFormatError
from ptv.core.ir import Dataset

logger = logging.getLogger(__name__)


class ConversionResult(NamedTuple):
    data: bytes
    dataset: Dataset


def convert_with_dataset(from_name: str, to_name: str, raw: bytes) -> ConversionResult:
    """Convert ``raw`` and also return the intermediate Dataset."""
    source = codecs.get(from_name)
    target = codecs.get(to_name)
    if source is None or target is None:
        raise UnknownFormatError("unsupported format")

    dataset = source.parse(raw)
    logger.debug(
        "Parsed %d record(s) from %s; rendering as %s",
        dataset.meta.record_count,
        source.name,
        target.name,
    )
    return ConversionResult(data=target.render(dataset), dataset=dataset)


def convert(from_name: str, to_name: str, raw: bytes) -> bytes:
    """Parse ``raw`` as ``from_name`` and render it as ``to_name``.

    Raises:
        UnknownFormatError: Either name is not registered.
        ParseError: The input could not be parsed.
        RenderError: The dataset could not be rendered.
    """
    return convert_with_dataset(from_name, to_name, raw).data
