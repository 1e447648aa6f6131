#!/usr/bin/env python3
"""Seed local (and remote, if configured) storage, push queued work, then start the server"""

import os
import sys

# Add the current directory to the system path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from core.config import get_settings
from services.persistence_gateway import PersistenceGateway


def seed_storage():
    """Create tables and seed the default fleet where storage is empty"""
    print("\n" + "=" * 50)
    print("SEEDING STORAGE")
    print("=" * 50)

    settings = get_settings()
    gateway = PersistenceGateway.from_settings(settings)
    gateway.initialize()

    print(f"Local cache: {settings.data_dir.resolve()}")
    print(f"Remote store: {'configured' if gateway.remote_configured else 'not configured (local-only)'}")

    result = gateway.sync_offline_changes()
    print(f"Offline queue: {result.succeeded} replayed, {result.remaining} still pending")
    print(f"Units: {len(gateway.fetch_units())}  Reports: {len(gateway.fetch_reports())}")

    if gateway.remote is not None:
        gateway.remote.dispose()


def start_server():
    """Start the FastAPI server"""
    print("\n" + "=" * 50)
    print("STARTING FASTAPI SERVER")
    print("=" * 50)
    print("\nServer: http://localhost:8000")
    print("API docs: http://localhost:8000/docs\n")

    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    seed_storage()
    start_server()
