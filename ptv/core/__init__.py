"""Core intermediate representation and shared heuristics.

WHY: Every codec, whatever its format, needs the same handful of pieces:
the IR dataclasses, one place that decides which source field names mean
"email" or "password", hash/salt identification, and a safe way to walk
untyped binary payloads. Keeping them here keeps the codecs small.

HOW: ir.py defines the data structures, classifier.py maps field names and
sniffs values, hashes.py identifies hash algorithms and splits modular crypt
strings, binary.py provides the bounds-checked cursor and absorption rules,
document.py converts a Dataset to and from its JSON wire document, and
errors.py holds the exception taxonomy.

RULES:
- IR dataclasses are the contract; change with care
- Nothing in core knows about a specific format
- Heuristic functions are pure and never raise on bad input
"""
