"""
Infrastructure Layer

Concrete tier implementations (local LRU, Redis metadata, S3 object store),
the orchestrator that composes them, and Prometheus metrics.
"""
