"""Abstract codec base.

WHY: The calling layer (``convert``, CLI, HTTP endpoint) must work with any
format generically: look a codec up by name, parse bytes into the IR,
render the IR into bytes. This base class fixes that interface.

HOW: Codec is an ABC with three requirements: a ``name`` property, a
``parse()`` method and a ``render()`` method. Codecs are stateless: a single
instance is registered and shared across every concurrent conversion.

RULES:
- ``name`` is unique, lowercase, snake_case and stable across versions
- ``parse`` skips malformed units where the format allows it and raises
  ContainerInvalidError / ZeroRecoverableError otherwise
- ``render`` never invents values for empty fields; structural
  placeholders a format requires are documented on the codec
- No per-call state on the instance

To add a new format:
1. Create a new module in codecs/
2. Subclass Codec and implement name, parse and render
3. Add it to BUILTIN_CODECS in codecs/__init__.py
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from ptv.core.errors import RenderIncompleteError
from ptv.core.ir import Dataset, Record

logger = logging.getLogger(__name__)


class Codec(ABC):
    """Abstract base for all format codecs."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Wire-level format selector, e.g. ``'kerberos_keytab'``."""

    @abstractmethod
    def parse(self, raw: bytes) -> Dataset:
        """Decode raw bytes of this format into a Dataset.

        Raises:
            ParseError: The container is invalid or no record survived.
        """

    @abstractmethod
    def render(self, dataset: Dataset) -> bytes:
        """Encode a Dataset into raw bytes of this format.

        Raises:
            RenderError: The dataset cannot be encoded at all.
        """

    def __repr__(self) -> str:
        return "<{} {}>".format(type(self).__name__, self.name)


def render_each(
    codec_name: str,
    records: Sequence[Record],
    encode: Callable[[Record], Optional[bytes]],
) -> List[bytes]:
    """Encode records for a list-shaped target, skipping unencodable ones.

    ``encode`` returns the bytes for one record, or raises
    RenderIncompleteError when the record lacks what the target needs.
    Skipped records are logged; the rest are returned in order.
    """
    chunks: List[bytes] = []
    for index, record in enumerate(records):
        try:
            chunk = encode(record)
        except RenderIncompleteError as exc:
            logger.warning("%s: skipping record %d (%s): %s", codec_name, index, record.ptv_id, exc)
            continue
        if chunk is not None:
            chunks.append(chunk)
    return chunks
