"""
Design generation and deterministic costing engine.

Pure Python. No database, no HTTP, no randomness.
Given a furniture type, a material and optional dimensions (or a free-text
request), produce an immutable Design with parts, cost, assembly time and
instructions. The cost function is re-run on every read and before an
order is accepted.
"""
