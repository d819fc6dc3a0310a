"""
Integration tests.

These exercise several orchestrators sharing the same remote tiers, the way
multiple server instances share one Redis and one bucket. In-memory stores
stand in for the backends so the suite runs without external services.
"""
