"""
Backend package for the mod portal API.

This package provides a FastAPI application that keeps its mods, stats,
images and activity log as JSON documents in a key-value store, with
in-memory, Redis and SQL backends for that store.
"""
