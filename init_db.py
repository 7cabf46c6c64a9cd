#!/usr/bin/env python3
"""
Database Initialization Script

Run once after cloning to create the tables, the seed admin account and the
recommendation reminder job.
"""
import sys
from pathlib import Path

# Add project directory to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    """Initialize database with default data"""
    print("=" * 60)
    print("Scholarship Application Portal - Database Initialization")
    print("=" * 60)

    # Import after ensuring path is set
    from scholarship_app.config import settings
    from scholarship_app.database import init_db, SessionLocal
    from scholarship_app.models.init_data import init_default_data

    print(f"\n🔨 Creating database tables ({settings.database_url})...")
    init_db()
    print("✅ Database schema created successfully")

    print("\n📊 Initializing default data...")
    db = SessionLocal()
    try:
        init_default_data(db)
        print("✅ Default data initialized")
    except Exception as e:
        print(f"❌ Error during initialization: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()

    print("\n" + "=" * 60)
    print("🎉 Database initialization completed!")
    print("=" * 60)
    print("\n📝 Next steps:")
    print("   1. Configure .env file (SECRET_KEY, EMAIL_API_KEY, APPLICATION_DEADLINE)")
    print("   2. Run: uvicorn scholarship_app.main:app --reload --host 0.0.0.0 --port 8000")
    print(f"   3. Access: {settings.app_base_url}/docs")
    print(f"\n👤 Default admin account: {settings.admin_email}")
    print("=" * 60)


if __name__ == "__main__":
    main()
