"""Rainbow table chain codec.

WHY: Precomputed rainbow tables are flat arrays of fixed-width chain
records with no header. Bringing them into the IR lets chain inventories be
listed, filtered and re-exported alongside other hash material.

HOW: The chain width is inferred from the file length. A file exactly 16,
24, 28 or 32 bytes long holds one chain of that width; otherwise the
candidates are tried in that order and the first that divides the length
evenly wins. Each chain is an 8-byte little-endian start index, an
8-byte little-endian end index, and (for widths above 16) trailing bytes
captured as hex.

RULES:
- Candidate order is fixed: a 48-byte file is read as three 16-byte chains
  even though 24 also divides it
- The width only annotates an assumed algorithm (16 md5/ntlm, 24 sha1,
  28 sha256, 32 sha512); nothing is verified
- No candidate fits ⇒ ContainerInvalidError
- Render writes 16-byte chains, plus each record's chain_extra bytes when
  every rendered chain carries extra bytes of the same length and
  16 + that length is itself a candidate width
- Records without integer chain_start/chain_end are skipped on render
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional, Tuple

from ptv.codecs.base import Codec, render_each
from ptv.core.errors import ContainerInvalidError, RenderIncompleteError
from ptv.core.binary import ByteReader
from ptv.core.ir import Dataset, Record, build_dataset

logger = logging.getLogger(__name__)

CHAIN_WIDTHS: Tuple[int, ...] = (16, 24, 28, 32)

WIDTH_ALGORITHMS = {
    16: "md5/ntlm",
    24: "sha1",
    28: "sha256",
    32: "sha512",
}

_U64_MAX = 0xFFFFFFFFFFFFFFFF


def detect_chain_width(length: int) -> int:
    """Return the chain width for a buffer of ``length`` bytes, or 0.

    A buffer exactly one candidate wide is a single chain of that width.
    Otherwise the first candidate that divides ``length`` evenly wins.
    """
    if length in CHAIN_WIDTHS:
        return length
    for width in CHAIN_WIDTHS:
        if length >= width and length % width == 0:
            return width
    return 0


def _chain_index(record: Record, key: str) -> int:
    raw = record.extra_str(key)
    if not raw:
        raise RenderIncompleteError("missing {}".format(key))
    try:
        value = int(raw, 10)
    except ValueError:
        raise RenderIncompleteError("{} is not an integer: {!r}".format(key, raw))
    if value < 0 or value > _U64_MAX:
        raise RenderIncompleteError("{} out of range: {}".format(key, value))
    return value


def _chain_extra(record: Record) -> Optional[bytes]:
    raw = record.extra_str("chain_extra")
    if not raw:
        return None
    try:
        return bytes.fromhex(raw)
    except ValueError:
        return None


class RainbowTableCodec(Codec):
    """Codec for headerless fixed-width rainbow table chain files."""

    @property
    def name(self) -> str:
        return "rainbow_table"

    def parse(self, raw: bytes) -> Dataset:
        width = detect_chain_width(len(raw))
        if width == 0:
            raise ContainerInvalidError(
                "cannot determine rainbow table chain size from {} bytes".format(len(raw))
            )
        algorithm = WIDTH_ALGORITHMS[width]
        logger.debug("rainbow_table: %d bytes, chain width %d (%s)", len(raw), width, algorithm)

        reader = ByteReader(raw)
        records: List[Record] = []
        index = 0
        while reader.remaining >= width:
            start = reader.u64le()
            end = reader.u64le()
            record = Record()
            record.extra = {
                "chain_start": str(start),
                "chain_end": str(end),
                "chain_index": str(index),
                "algorithm": algorithm,
            }
            if width > 16:
                record.extra["chain_extra"] = reader.read(width - 16).hex()
            records.append(record)
            index += 1

        return build_dataset(self.name, records)

    def render(self, dataset: Dataset) -> bytes:
        chains = render_each(self.name, dataset.records, self._encode_pair)
        if not chains:
            return b""

        extras = [_chain_extra(record) for record in dataset.records if self._renderable(record)]
        widths = {len(extra) if extra is not None else 0 for extra in extras}
        if len(widths) == 1 and 16 + next(iter(widths)) in CHAIN_WIDTHS:
            return b"".join(pair + (extra or b"") for pair, extra in zip(chains, extras))
        return b"".join(chains)

    @staticmethod
    def _renderable(record: Record) -> bool:
        try:
            _chain_index(record, "chain_start")
            _chain_index(record, "chain_end")
        except RenderIncompleteError:
            return False
        return True

    @staticmethod
    def _encode_pair(record: Record) -> bytes:
        return struct.pack("<QQ", _chain_index(record, "chain_start"), _chain_index(record, "chain_end"))
