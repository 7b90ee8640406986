# seed_db.py
"""
Database Seeding Script
=======================

Seeds one hospital with doctors on the default Monday to Friday week,
patients, generated slots and optionally a few booked appointments per
doctor. Slots are produced by the same regeneration path the API uses.

Usage:
    python seed_db.py --doctors 5 --patients 50
    python seed_db.py --doctors 2 --patients 10 --bookings 4 --horizon-days 14
    python seed_db.py --doctors 3 --patients 20 --night-clinic --export-csv

Requirements:
    - A valid database configuration (DB_DRIVER, DB_NAME, ...).
    - Migrations applied (``alembic upgrade head``).
"""

import sys
import argparse
import asyncio
from scripts.db import seed_db, DEFAULT_DATA_TEMPLATE, NIGHT_CLINIC_TEMPLATE
from app.db import DbManager
from common.config import initialize_config, DatabaseConfig, SchedulingConfig
from common.api_error import ConfigurationError
from dotenv import load_dotenv


def get_db_config():
    """
    Load and validate database configuration.

    Returns:
        tuple: (config, db_config)

    Raises:
        SystemExit: If configuration cannot be loaded.
    """
    try:
        config = initialize_config()
    except ConfigurationError as e:
        print(f"FATAL: Configuration error:\n{e}")
        sys.exit(1)

    if config.database is None:
        print("FATAL: Database configuration required (set DB_DRIVER and DB_NAME)")
        sys.exit(1)
    return config, config.database


async def run_seed_db(
    _db_config: DatabaseConfig,
    scheduling: SchedulingConfig,
    args: argparse.Namespace,
):
    """
    Seed the database described by ``_db_config`` using parsed CLI args.

    Example:
        >>> asyncio.run(run_seed_db(db_cfg, config.scheduling, parser.parse_args()))
    """
    template = dict(DEFAULT_DATA_TEMPLATE)
    if args.night_clinic:
        template["hospital"] = NIGHT_CLINIC_TEMPLATE
    template["hospital"] = {**template["hospital"], "timezone": args.timezone}

    db_manager = DbManager.from_config(_db_config)
    try:
        await db_manager.verify_connection()
        result = await seed_db(
            db_manager=db_manager,
            data_template=template,
            doctors=args.doctors,
            patients=args.patients,
            bookings_per_doctor=args.bookings,
            horizon_days=args.horizon_days,
            export_csv=args.export_csv,
            csv_dir=args.csv_dir,
            scheduling=scheduling,
        )
    finally:
        await db_manager.dispose()

    print(f"Hospital: {result['hospital']}")
    print(
        f"Doctors: {len(result['doctors'])}, patients: {len(result['patients'])}, "
        f"slots: {result['slots_generated']}, appointments: {len(result['appointments'])}"
    )


def main():
    parser = argparse.ArgumentParser(description="Seed a scheduling database")
    parser.add_argument(
        "--doctors", type=int, required=True, help="Number of doctors (REQUIRED)"
    )
    parser.add_argument(
        "--patients", type=int, default=0, help="Number of patients to register"
    )
    parser.add_argument(
        "--bookings",
        type=int,
        default=0,
        help="Open slots to book per doctor, cycling through patients",
    )
    parser.add_argument(
        "--horizon-days", type=int, default=28, help="Days of slots to generate"
    )
    parser.add_argument(
        "--timezone", type=str, default="UTC", help="Hospital IANA timezone"
    )
    parser.add_argument(
        "--night-clinic",
        action="store_true",
        help="Use hospital timings with a night band that crosses midnight",
    )
    parser.add_argument(
        "--export-csv", action="store_true", help="Export seeded records to CSV"
    )
    parser.add_argument(
        "--csv-dir", type=str, default="data/seed", help="Directory to export CSV files"
    )

    args = parser.parse_args()
    config, _db_config = get_db_config()
    asyncio.run(run_seed_db(_db_config, config.scheduling, args))


if __name__ == "__main__":
    load_dotenv()
    main()
