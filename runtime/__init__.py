"""
Runtime package for the storefront back-office server.

This package contains:
- API layer (FastAPI app factory + routes)
- Services (catalog operations over the store document)
- Stores (JSON document, sessions, rate limiting, uploads)
- Models (Pydantic records for the document, sessions and HTTP payloads)
"""
