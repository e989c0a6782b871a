#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Create the MongoDB indexes PawHub relies on.

Usage:
    pawhub-create-indexes [--uri URI] [--database NAME]

Defaults come from ``MONGODB_URI`` / ``MONGODB_DATABASE``. Running it twice is
harmless: ``create_index`` is a no-op for an index that already exists.
"""

import sys
import logging
import argparse

from ..services.mongodb import (
    MongoDBService,
    USUARIOS_COLLECTION,
    PROJETOS_COLLECTION,
    AUDIT_LOGS_COLLECTION,
    MEMBERSHIP_COLLECTIONS,
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create PawHub MongoDB indexes")
    parser.add_argument("--uri", help="MongoDB connection string")
    parser.add_argument("--database", help="Database name")
    return parser.parse_args(argv)


def main(argv=None, mongodb_service: MongoDBService = None) -> int:
    """Create indexes and log what each collection ends up with. Returns the exit code."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = parse_args(argv)
    service = mongodb_service or MongoDBService(args.uri, args.database)

    try:
        health = service.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB is not reachable: {health.get('error')}")
            return 1

        service.create_indexes()

        for name in (USUARIOS_COLLECTION, PROJETOS_COLLECTION, *MEMBERSHIP_COLLECTIONS, AUDIT_LOGS_COLLECTION):
            indexes = sorted(service.get_collection(name).index_information())
            logger.info(f"{name}: {', '.join(indexes)}")
        return 0

    except Exception as e:
        logger.error(f"Failed to create indexes in {service.database_name}: {e}")
        return 1
    finally:
        service.close_connection()


if __name__ == "__main__":
    sys.exit(main())
