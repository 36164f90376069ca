"""
HTTP layer for the storefront runtime (FastAPI app factory + routes).
"""
