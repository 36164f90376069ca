"""UploadGarbageCollector: remove uploaded images no product references.

An upload is orphaned when its filename is not the base name of any
product's `image` path. Collection is best-effort: a file that cannot be
deleted is logged and skipped, and shows up as a lower deleted count.

Safe to run at startup and on demand; it only reads the in-memory
document and only deletes files outside the reference set.
"""

import logging
from typing import List, Set

from ..models.api_models import CleanupReport, OrphanScan
from ..models.store_models import StoreDocument
from .document_store import DocumentStore
from .upload_store import UploadStore, filename_from_path


logger = logging.getLogger(__name__)


def referenced_filenames(document: StoreDocument) -> Set[str]:
    """Return the base filenames referenced by product images."""
    return {
        filename_from_path(product.image)
        for product in document.products
        if product.image
    }


class UploadGarbageCollector:
    def __init__(self, store: DocumentStore, uploads: UploadStore) -> None:
        self.store = store
        self.uploads = uploads

    def list_uploaded(self) -> List[str]:
        """Return the regular files in the uploads directory (sorted).

        A missing directory is not an error: there is nothing to collect.
        """
        directory = self.uploads.uploads_dir
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir() if entry.is_file())

    def scan(self) -> OrphanScan:
        """Report orphaned uploads without deleting anything."""
        uploaded = self.list_uploaded()
        referenced = referenced_filenames(self.store.document)
        return OrphanScan(
            total_files=len(uploaded),
            product_images=len(referenced),
            orphaned_files=[name for name in uploaded if name not in referenced],
            all_files=uploaded,
            product_image_list=sorted(referenced),
        )

    def collect(self) -> CleanupReport:
        """Delete every orphaned upload and report what happened.

        Deletes nothing while the store runs on a stand-in for an unreadable
        document, since its references are not the real ones.
        """
        uploaded = self.list_uploaded()
        referenced = referenced_filenames(self.store.document)
        if self.store.recovered:
            logger.warning("[GC] Store document was unreadable; cleanup skipped")
            return CleanupReport(total_files=len(uploaded), product_images=len(referenced))
        logger.info(
            "[GC] Starting cleanup: files=%d referenced=%d dir=%s",
            len(uploaded),
            len(referenced),
            self.uploads.uploads_dir,
        )

        deleted: List[str] = []
        for name in uploaded:
            if name in referenced:
                continue
            try:
                (self.uploads.uploads_dir / name).unlink()
            except OSError as e:
                logger.warning("[GC] Failed to delete orphaned image %s: %s", name, e)
                continue
            deleted.append(name)
            logger.info("[GC] Orphaned image deleted: %s", name)

        report = CleanupReport(
            total_files=len(uploaded),
            product_images=len(referenced),
            deleted_count=len(deleted),
            deleted_files=deleted,
        )
        if deleted:
            logger.info("[GC] Cleanup completed: deleted %d of %d", len(deleted), len(uploaded))
        else:
            logger.info("[GC] No orphaned images found")
        return report
