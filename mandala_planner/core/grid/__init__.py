"""Nested 3x3 grid store.

The tree is kept as a flat id -> Cell map plus a single active-center pointer.
Children are addressed by id derivation (`{parent}_{row}_{col}`), so parent
links are lookups, never object references.
"""
