#!/usr/bin/env python3
"""
SmartCalendar Database Setup Script
===================================

Creates missing tables from the SQLAlchemy models. Run before starting the
API server or the Celery reminder worker.

Usage:
    python scripts/setup_database.py [--check-only]
"""

import sys
import logging
import argparse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from smartcalendar.db.session import engine
from smartcalendar.db.base import Base

# Registers every model with Base.metadata
from smartcalendar import models  # noqa: F401

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def test_connection():
    """Test database connection"""
    logger.info("Testing database connection...")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False


def missing_tables():
    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()
    required_tables = [table.name for table in Base.metadata.tables.values()]
    return [table for table in required_tables if table not in existing_tables]


def main() -> int:
    parser = argparse.ArgumentParser(description="Set up SmartCalendar database tables")
    parser.add_argument("--check-only", action="store_true", help="Only report missing tables")
    args = parser.parse_args()

    if not test_connection():
        return 1

    missing = missing_tables()
    if not missing:
        logger.info("All required tables exist")
        return 0

    logger.info(f"Missing tables: {missing}")
    if args.check_only:
        return 1

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Tables created")
    return 0


if __name__ == "__main__":
    sys.exit(main())
