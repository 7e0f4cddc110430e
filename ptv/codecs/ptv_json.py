"""The IR's own JSON document as a format.

WHY: Converting into ``ptv_json`` exposes everything a parse recovered,
including ``unknowns``, ``extra`` and per-column confidence, which no
other target can carry. Converting from it lets an edited or hand-built
document feed any other codec.

HOW: Thin wrapper around ``ptv.core.document``. Output is validated against
the bundled JSON Schema before it is returned, and input is validated
before it is turned back into dataclasses.

RULES:
- Single-document target: any record that fails validation fails the
  whole render with RenderError
- Undecodable, non-JSON or schema-invalid input ⇒ ContainerInvalidError
- A valid document with zero records ⇒ ZeroRecoverableError
- Output is strict JSON (no NaN or Infinity), UTF-8, indented, with
  non-ASCII characters kept as-is
"""

from __future__ import annotations

import json

import jsonschema

from ptv.codecs.base import Codec
from ptv.core.document import from_document, to_document, validate_document
from ptv.core.errors import ContainerInvalidError, RenderError, ZeroRecoverableError
from ptv.core.ir import Dataset


class PTVJsonCodec(Codec):
    """Codec for the canonical PTV JSON document."""

    @property
    def name(self) -> str:
        return "ptv_json"

    def parse(self, raw: bytes) -> Dataset:
        try:
            document = json.loads(raw.decode("utf-8-sig"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ContainerInvalidError("ptv_json: not a JSON document: {}".format(exc)) from exc

        try:
            validate_document(document)
        except jsonschema.ValidationError as exc:
            raise ContainerInvalidError("ptv_json: schema violation: {}".format(exc.message)) from exc

        try:
            dataset = from_document(document)
        except ValueError as exc:
            raise ContainerInvalidError("ptv_json: {}".format(exc)) from exc

        if not dataset.records:
            raise ZeroRecoverableError("ptv_json: document has no records")
        return dataset

    def render(self, dataset: Dataset) -> bytes:
        document = to_document(dataset)
        try:
            validate_document(document)
        except jsonschema.ValidationError as exc:
            raise RenderError("ptv_json: schema violation: {}".format(exc.message)) from exc
        try:
            text = json.dumps(document, indent=2, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise RenderError("ptv_json: {}".format(exc)) from exc
        return (text + "\n").encode("utf-8")
