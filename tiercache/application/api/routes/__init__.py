"""
API Routes

Routers for health, cache access and administration.
"""
