"""State/store layer.

This package is the single source of truth for how discovery snapshots and
stream events are merged into a per-device state model.
"""
