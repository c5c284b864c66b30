"""Ingestion layer.

Adapters that turn hub stream envelopes and configuration entries into
state-store mutations.
"""

__all__: list[str] = []
