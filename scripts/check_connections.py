#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB is reachable and Google sign-in is configured.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from hirepath.core.config import get_settings
from hirepath.db.mongodb import test_mongo_connection
from hirepath.services.google_oauth import GoogleAuthProvider


def main():
    settings = get_settings()
    print("=" * 50)
    print("HIREPATH - CONNECTION CHECK")
    print("=" * 50)

    # MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    # Google OAuth (config only, no network call)
    print("\n[2] Checking Google OAuth config...")
    provider = GoogleAuthProvider.from_settings(settings)
    if provider.is_configured:
        print(f"    Callback URL: {provider.callback_url}")
        print("    ✅ Google OAuth: CONFIGURED")
    else:
        print("    ⚠️  Google OAuth: GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not set")

    # JWT secret
    print("\n[3] Checking JWT secret...")
    if settings.jwt_secret_key and settings.jwt_secret_key != "change-this-secret":
        print("    ✅ JWT secret: SET")
    else:
        print("    ⚠️  JWT secret: using the default, set JWT_SECRET_KEY")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
