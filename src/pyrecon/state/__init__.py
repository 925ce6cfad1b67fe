"""State/store layer.

This package is the single source of truth for how the baseline catalog
and the persisted overlay collections are merged into one canonical
record per vehicle, and for which lifecycle moves are legal.
"""
