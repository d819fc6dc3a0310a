"""
Application Layer

Cache handler service and the FastAPI application exposing it.
"""
