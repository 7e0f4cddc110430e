"""PTV exception hierarchy.

Each terminal failure carries the wire-level error code the calling layer
reports. ``UnitUnparseable`` is internal: codecs catch it, skip the unit and
keep scanning, so it never escapes a ``parse`` call.
"""

from __future__ import annotations


class PTVError(Exception):
    """Base exception for all PTV failures."""

    code = "ptv_error"


class ParseError(PTVError):
    """Raised when a codec cannot produce a Dataset."""

    code = "parse_error"


class ContainerInvalidError(ParseError):
    """Raised for a malformed container header or magic; nothing was read."""


class ZeroRecoverableError(ParseError):
    """Raised when the scan finished but no unit survived."""


class RenderError(PTVError):
    """Raised when a codec cannot produce output bytes."""

    code = "render_error"


class RenderIncompleteError(RenderError):
    """Raised when a record cannot be encoded into the target shape.

    List-shaped targets catch this per record and skip; single-document
    targets let it propagate.
    """


class UnitUnparseable(PTVError):
    """One record, entry or message is malformed; skip it and continue."""


class TruncatedInput(UnitUnparseable):
    """A read would run past the end of the available bytes."""


class UnknownFormatError(PTVError):
    """Raised by the calling layer when a format name is not registered."""

    code = "invalid_format"
