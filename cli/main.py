#!/usr/bin/env python3
"""
Storefront back-office CLI

Operator commands around the store document and the uploads directory.

1) serve
   - Start the HTTP server (uvicorn) with the FastAPI app.

2) init-db
   - Load the store document (creating the seeded default on first run)
     and write it back, so the data file exists before the first request.

3) hash-password
   - Print the digest to put in ADMIN_PASSWORD_HASH.

4) check-images
   - List uploaded images that no product references (nothing deleted).

5) cleanup-images
   - Delete those orphaned images and print the report.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from configs.settings import settings
from core.auth.passwords import hash_password
from runtime.store.document_store import DocumentStore
from runtime.store.upload_gc import UploadGarbageCollector
from runtime.store.upload_store import UploadStore


def _open_store(data_file: str) -> DocumentStore:
    store = DocumentStore(
        data_file,
        admin_username=settings.admin_username,
        admin_password_hash=settings.admin_password_hash,
        lock_timeout=settings.save_lock_timeout,
        strip_legacy_categories=settings.strip_legacy_categories,
    )
    store.load()
    return store


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_serve(host: str, port: int) -> None:
    """Run the HTTP server in the foreground."""
    # Lazy import so maintenance commands do not need the server stack.
    import uvicorn

    from runtime.api.server import create_app

    print(f"[Storefront] Server running at http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port)


def cmd_init_db(data_file: str) -> None:
    store = _open_store(data_file)
    asyncio.run(store.save())
    document = store.document
    print(f"[Storefront] ✓ Store document written → {store.path}")
    print(
        f"[Storefront]   users={len(document.users)} "
        f"categories={len(document.categories)} products={len(document.products)}"
    )


def cmd_hash_password(password: str) -> None:
    print(hash_password(password))


def cmd_check_images(data_file: str, uploads_dir: str) -> None:
    store = _open_store(data_file)
    gc = UploadGarbageCollector(store, UploadStore(uploads_dir))
    scan = gc.scan()
    print(
        f"[Storefront] {scan.total_files} file(s), "
        f"{scan.product_images} referenced, {len(scan.orphaned_files)} orphaned"
    )
    for name in scan.orphaned_files:
        print(f"[Storefront]   orphan: {name}")


def cmd_cleanup_images(data_file: str, uploads_dir: str) -> None:
    store = _open_store(data_file)
    if store.recovered:
        print(
            f"[Storefront] ✗ {store.path} is unreadable; refusing to delete uploads",
            file=sys.stderr,
        )
        sys.exit(1)
    gc = UploadGarbageCollector(store, UploadStore(uploads_dir))
    report = gc.collect()
    print(json.dumps(report.model_dump(by_alias=True), indent=2))


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront back-office CLI")
    parser.add_argument(
        "--data-file",
        default=str(settings.data_file),
        help="Store document path (default: STOREFRONT_DATA_FILE or 'data/database.json')",
    )
    parser.add_argument(
        "--uploads-dir",
        default=str(settings.uploads_dir),
        help="Uploaded images directory (default: STOREFRONT_UPLOADS_DIR or 'uploads/products')",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subparsers.add_parser("serve", help="Start the HTTP server")
    p_serve.add_argument("--host", default=settings.host)
    p_serve.add_argument("--port", type=int, default=settings.port)

    # init-db
    subparsers.add_parser(
        "init-db", help="Create or normalize the store document on disk"
    )

    # hash-password
    p_hash = subparsers.add_parser(
        "hash-password", help="Print the digest for ADMIN_PASSWORD_HASH"
    )
    p_hash.add_argument("password")

    # check-images
    subparsers.add_parser(
        "check-images", help="List orphaned uploads without deleting them"
    )

    # cleanup-images
    subparsers.add_parser(
        "cleanup-images", help="Delete uploads no product references"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    command: str = args.command

    if command == "serve":
        cmd_serve(host=args.host, port=args.port)
    elif command == "init-db":
        cmd_init_db(data_file=args.data_file)
    elif command == "hash-password":
        cmd_hash_password(password=args.password)
    elif command == "check-images":
        cmd_check_images(data_file=args.data_file, uploads_dir=args.uploads_dir)
    elif command == "cleanup-images":
        cmd_cleanup_images(data_file=args.data_file, uploads_dir=args.uploads_dir)
    else:
        parser.error(f"Unknown command: {command}")


if __name__ == "__main__":
    main()
