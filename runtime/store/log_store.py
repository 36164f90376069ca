"""
Activity log: append-only record of catalog changes kept in the document.

Entries are never trimmed on write; readers ask for the newest N.
"""

from typing import List, Optional

from ..models.store_models import ActivityEntry, StoreDocument


def log_activity(
    document: StoreDocument,
    action: str,
    *,
    product: Optional[str] = None,
    category: Optional[str] = None,
) -> ActivityEntry:
    """Append an entry naming the product or category that changed."""
    entry = ActivityEntry(action=action, product=product, category=category)
    document.activity_log.append(entry)
    return entry


def recent_activity(document: StoreDocument, limit: int = 20) -> List[ActivityEntry]:
    """Return the last `limit` entries, newest first."""
    if limit <= 0:
        return []
    return list(reversed(document.activity_log[-limit:]))
