"""
Storage components for the storefront runtime.

Includes:
- DocumentStore: the single JSON document (atomic, serialized writes)
- SessionRegistry: in-memory admin sessions with expiry
- LoginRateLimiter: fixed-window login attempt counter
- UploadStore / UploadGarbageCollector: product images and orphan cleanup
- activity_log: append/read helpers for the document's activity log
"""
