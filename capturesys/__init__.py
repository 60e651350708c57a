"""Core package for the capture ingestion system.

Capture producers write into the durable queue; the enrichment pipeline
drains it into the item store. Opaque link helpers live in
:mod:`capturesys.links`.
"""

__all__: list[str] = []
