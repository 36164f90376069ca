"""DocumentStore: the single JSON document that acts as the database.

Layout on disk:

    <path>          the document itself (always valid JSON)
    <path>.backup   copy of the previous document, only while a save runs
    <path>.tmp      the document being written, only while a save runs

The store is loaded once at process start and the in-memory document is
the authority between saves. Callers mutate `store.document` directly and
then `await store.save()`; a crash between the two loses the mutation.

Saves are serialized through an asyncio.Lock (FIFO, at most one writer at
a time). The document is serialized on the event loop while the lock is
held, and the blocking file operations then run in a worker thread so the
loop keeps serving requests during disk I/O.
"""

import asyncio
import json
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from exceptions.exceptions import StoreWriteError
from ..models.store_models import StoreDocument, User


logger = logging.getLogger(__name__)

# Category names shipped by the first seed data. Documents still carrying
# any of them get their category list cleared when legacy cleanup is on.
LEGACY_CATEGORY_NAMES = frozenset(
    ["camisetas", "sudaderas", "pantalones", "accesorios"]
)


def next_id(records: Iterable) -> int:
    """Return max(id) + 1 over the records, or 1 for an empty collection.

    Ids freed below the current maximum are never handed out again.
    """
    ids = [r.id for r in records]
    return max(ids) + 1 if ids else 1


class DocumentStore:
    """Load/save access to the store document.

    Parameters
    ----------
    path:
        Location of the JSON document.
    admin_username / admin_password_hash:
        Administrator seeded into a freshly created document. The hash is
        a precomputed SHA-256 hex digest, never a plaintext password.
    lock_timeout:
        Seconds a save waits for the write lock before giving up with
        StoreWriteError.
    strip_legacy_categories:
        Apply the one-time legacy seed category cleanup on load.
    """

    def __init__(
        self,
        path,
        admin_username: str = "admin",
        admin_password_hash: str = "",
        lock_timeout: float = 30.0,
        strip_legacy_categories: bool = False,
    ) -> None:
        self.path = Path(path)
        self.admin_username = admin_username
        self.admin_password_hash = admin_password_hash
        self.lock_timeout = lock_timeout
        self.strip_legacy_categories = strip_legacy_categories

        self._document: Optional[StoreDocument] = None
        # Set when load() replaced an unreadable existing file. The original
        # is copied to recovered_from, when the copy succeeded.
        self.recovered = False
        self.recovered_from: Optional[Path] = None
        self._lock = asyncio.Lock()

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".backup")

    @property
    def tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    @property
    def document(self) -> StoreDocument:
        """The in-memory document, loading it on first access."""
        if self._document is None:
            self.load()
        return self._document

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def default_document(self) -> StoreDocument:
        """Return a fresh document seeded with the configured administrator."""
        admin = User(
            id=1,
            username=self.admin_username,
            password_hash=self.admin_password_hash,
            role="admin",
        )
        return StoreDocument(users=[admin])

    def load(self) -> StoreDocument:
        """Read the document from disk, falling back to defaults.

        Never raises: a missing file yields the seeded default document, an
        unreadable or malformed one is logged as an error, copied aside to
        `<path>.corrupt-<timestamp>` and replaced by the default document,
        with `recovered` set so callers can avoid acting on the stand-in.
        """
        document = None
        self.recovered = False
        self.recovered_from = None
        if self.path.is_file():
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
                document = StoreDocument.model_validate(data)
            except (OSError, ValueError) as e:
                # JSONDecodeError and pydantic's ValidationError are ValueErrors.
                logger.error(
                    "[STORE] Error loading %s, creating new document: %s",
                    self.path,
                    e,
                )
                document = None
                self.recovered = True
                self.recovered_from = self._preserve_unreadable()
            else:
                if self.strip_legacy_categories:
                    self._strip_legacy_categories(document)
                logger.info(
                    "[STORE] Document loaded: products=%d categories=%d",
                    len(document.products),
                    len(document.categories),
                )

        if document is None:
            document = self.default_document()

        self._document = document
        return document

    def _preserve_unreadable(self) -> Optional[Path]:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            shutil.copyfile(self.path, target)
        except OSError as e:
            logger.error("[STORE] Could not preserve unreadable %s: %s", self.path, e)
            return None
        logger.warning("[STORE] Unreadable document kept at %s", target)
        return target

    def _strip_legacy_categories(self, document: StoreDocument) -> None:
        names = [c.name for c in document.categories]
        if any(name.lower() in LEGACY_CATEGORY_NAMES for name in names):
            logger.info(
                "[STORE] Removing legacy seed categories: %s", names
            )
            document.categories = []

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self, document: Optional[StoreDocument] = None) -> None:
        """Persist the document (the in-memory one unless given).

        Concurrent callers queue on the write lock in arrival order. Raises
        StoreWriteError when the lock cannot be acquired within
        `lock_timeout` or when the write fails; the failure is never
        silently dropped.
        """
        if document is not None:
            self._document = document

        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.lock_timeout)
        except asyncio.TimeoutError:
            logger.error(
                "[STORE] Timed out after %.1fs waiting for the write lock",
                self.lock_timeout,
            )
            raise StoreWriteError(self.path, "timed out waiting for the write lock")

        try:
            # Snapshot on the loop thread: no handler can mutate mid-dump.
            payload = json.dumps(
                self.document.to_json_dict(), ensure_ascii=False, indent=2
            )
            await asyncio.to_thread(self._write_atomic, payload)
        finally:
            self._lock.release()

    def _write_atomic(self, payload: str) -> None:
        backup = self.backup_path
        tmp = self.tmp_path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            if self.path.exists():
                shutil.copyfile(self.path, backup)

            with tmp.open("w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp, self.path)

            if backup.exists():
                backup.unlink()
        except OSError as e:
            logger.error("[STORE] Failed to save %s: %s", self.path, e)
            self._restore_from_backup()
            raise StoreWriteError(self.path, str(e)) from e

        logger.debug("[STORE] Document saved to %s", self.path)

    def _restore_from_backup(self) -> None:
        try:
            self.tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("[STORE] Could not remove %s: %s", self.tmp_path, e)

        backup = self.backup_path
        if not backup.exists():
            return
        try:
            shutil.copyfile(backup, self.path)
            backup.unlink()
        except OSError as e:
            logger.error("[STORE] Failed to restore backup %s: %s", backup, e)
        else:
            logger.info("[STORE] Document restored from backup")

