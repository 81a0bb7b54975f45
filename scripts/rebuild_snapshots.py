#!/usr/bin/env python3
"""
Rebuild snapshots from the history logs.

This script demonstrates the Reconstruction Guarantee:
The snapshot store (current state) can be fully rebuilt from the
append-only history logs.

Usage:
    python scripts/rebuild_snapshots.py
    python scripts/rebuild_snapshots.py --root /path/to/library
    python scripts/rebuild_snapshots.py --verify
"""

import argparse
from pathlib import Path

from lectern.core.config import settings, setup_logging, get_logger
from lectern.storage.library import LibraryStore

logger = get_logger("rebuild")


def rebuild_all(root: Path, verify: bool = False) -> dict:
    """Rebuild every snapshot from its history log."""
    logger.info(f"Rebuilding snapshots under {root}")

    results = {
        "histories_scanned": 0,
        "snapshots_rewritten": 0,
        "issues": [],
    }

    store = LibraryStore(root)
    item_ids = store.history.item_ids()
    results["histories_scanned"] = len(item_ids)

    print("\n📜 Rebuilding snapshots from history...")
    results["snapshots_rewritten"] = store.rebuild()
    print(f"   ✓ Rewrote {results['snapshots_rewritten']} of {len(item_ids)} snapshots")

    if verify:
        print("\n🔍 Verifying history chains...")
        for item_id in item_ids:
            report = store.verify(item_id)
            for issue in report.issues:
                results["issues"].append(f"{item_id}: {issue.message}")
        print(f"   ✓ Checked {len(item_ids)} histories")

    return results


def main():
    parser = argparse.ArgumentParser(description="Rebuild snapshots from history logs")
    parser.add_argument(
        "--root",
        type=Path,
        default=settings.library_root,
        help="Path to library root",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Audit every history chain after rebuilding",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    setup_logging("DEBUG" if args.verbose else "INFO")

    print("=" * 50)
    print("Lectern - Snapshot Rebuild")
    print("=" * 50)
    print(f"\nLibrary root: {args.root}")

    results = rebuild_all(args.root, verify=args.verify)

    print("\n" + "=" * 50)
    print("Summary")
    print("=" * 50)
    print(f"Histories scanned:   {results['histories_scanned']}")
    print(f"Snapshots rewritten: {results['snapshots_rewritten']}")

    if results["issues"]:
        print(f"\n⚠️  Issues: {len(results['issues'])}")
        for issue in results["issues"]:
            print(f"   - {issue}")
    else:
        print("\n✅ Rebuild complete!")


if __name__ == "__main__":
    main()
