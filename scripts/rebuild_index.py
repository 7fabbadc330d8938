#!/usr/bin/env python3
"""Index reconciliation for exact-key store backends.

Usage: python3 scripts/rebuild_index.py [--entity TYPE ...] [--repair] [--config PATH]

Compares each owned type's `<entityType>:index` set with the record keys
under that type and reports ghost ids (indexed, record missing) and unindexed
records. Without `--repair` nothing is written. Exits 1 when
inconsistencies remain.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hotelops_lib.config.config import DEFAULT_SERVER_CONFIG, StoreConfig  # noqa: E402
from hotelops_lib.storage.manager import StoreManager  # noqa: E402

logger = logging.getLogger('rebuild_index')


async def run(config: StoreConfig, entity_types, repair: bool) -> dict:
    manager = StoreManager()
    await manager.initialize(config)
    try:
        store = manager.get_store()
        if not store.index_backed:
            logger.info("Backend %s lists by prefix scan; nothing to reconcile", store.kind)
        report = await store.reconcile(entity_types, repair=repair)
    finally:
        await manager.teardown()
    return report.to_dict()


def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument('--entity', action='append', dest='entities', help='entity type to check (repeatable; default every type the store owns)')
    p.add_argument('--repair', action='store_true', help='add unindexed records and drop ghost ids')
    p.add_argument('--config', type=Path, default=ROOT / DEFAULT_SERVER_CONFIG)
    p.add_argument('-v', '--verbose', action='store_true')
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')

    config = StoreConfig.load(args.config)
    result = asyncio.run(run(config, args.entities, args.repair))
    print(json.dumps(result, indent=2))
    if result['ok'] or (args.repair and result['repaired']):
        return 0
    return 1


if __name__ == '__main__':
    sys.exit(main())
