"""
tiercache - three-tier cache coordinator.

Local recency cache -> Redis freshness metadata -> S3-compatible object store.
"""

__version__ = "1.0.0"
