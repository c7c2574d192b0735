"""
Database setup script - checks the MongoDB connection and creates all indexes
Run: python -m dinebook_service.migrations.setup_database
"""
import sys

from pymongo.errors import PyMongoError

from dinebook_service.config import get_settings
from dinebook_service.infrastructure.database.session import close_client, ensure_indexes, get_client


def check_connection():
    """Ping the server so a wrong MONGODB_URI fails fast"""
    print("🔍 Checking MongoDB connection...")
    get_client().admin.command("ping")
    print("✅ Connected")


def create_indexes(database_name: str):
    """Create indexes, including the 2dsphere index nearby search depends on"""
    print(f"📦 Creating indexes in database '{database_name}'...")
    db = get_client()[database_name]
    ensure_indexes(db)
    for collection in ("restaurants", "bookings", "booking_slots", "reviews", "favorites", "users"):
        names = sorted(db[collection].index_information())
        print(f"   {collection}: {', '.join(names)}")
    print("✅ Indexes ready")


def main():
    """Main setup function"""
    print("=" * 70)
    print("🚀 Database setup - DineBook Service")
    print("=" * 70)

    try:
        settings = get_settings()
        check_connection()
        create_indexes(settings.database_name)
    except (PyMongoError, RuntimeError) as e:
        print()
        print("❌ Database setup failed!")
        print(f"Details: {e}")
        sys.exit(1)
    finally:
        close_client()

    print()
    print("🎉 Setup finished. Start the API with:")
    print("   python -m dinebook_service.app.main")


if __name__ == "__main__":
    main()
