"""
Services used by the storefront runtime.

For now there is one: CatalogService, which
- validates catalog changes
- applies them to the store document
- persists them through the DocumentStore
"""
