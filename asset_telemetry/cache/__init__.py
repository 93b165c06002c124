"""
Redis helpers: client factory and per-asset retrieval lock.
"""
