"""
Initialize database — creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed-name NAME --channel ID --read-key KEY]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.models.location import Location
from sqlalchemy import inspect, text


def seed_location(name, channel_id, read_key, region=None):
    db = SessionLocal()
    try:
        location = Location(name=name, region=region,
                            thingspeak_channel_id=channel_id, thingspeak_read_key=read_key)
        db.add(location)
        db.commit()
        print(f"📍 Location '{name}' created with id {location.id}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create tables and optionally seed a location")
    parser.add_argument("--seed-name")
    parser.add_argument("--region")
    parser.add_argument("--channel")
    parser.add_argument("--read-key")
    args = parser.parse_args()

    print("🗄️  Firewatch DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = inspect(engine).get_table_names()
    print(f"✅ Tables ready ({len(tables)} total): {', '.join(sorted(tables))}")

    if args.seed_name:
        seed_location(args.seed_name, args.channel, args.read_key, args.region)

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
