"""
Pydantic datamodels used by the storefront runtime.

Split into:
- store_models: StoreDocument + User / Category / Product / ActivityEntry / Stats
- session_models: Session + SessionUser
- api_models: HTTP request/response schemas and cleanup reports
"""
