"""PTV: credential format conversion hub.

WHY: Credential and identity data turns up in dozens of unrelated shapes:
combo lists, hash lists, pot files, Kerberos keytabs, Thrift and Protobuf
blobs, rainbow-table chains. Converting every pair directly is unmanageable.
This package parses each format into one canonical intermediate
representation (IR) and renders the IR back out to any other format.

HOW: Three layers: the core (IR dataclasses, field classifier, hash/salt
heuristics, schema-less binary decoder), the codecs (one parse/render pair
per format, looked up through a process-wide registry), and a thin calling
layer (``convert``, CLI, HTTP endpoint).

RULES:
- Every codec parses to and renders from the same Dataset IR
- Adding a new format = one new codec module plus one line in the registry
- Values that cannot be classified go to ``extra`` or ``unknowns``, never away
"""

__version__ = "0.1.0"

from ptv.conversion import convert  # noqa: E402
