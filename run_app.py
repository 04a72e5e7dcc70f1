#!/usr/bin/env python3
"""
Ecommerce Affiliates Backend Runner
===================================

Run the API, the Celery worker or the beat scheduler from one place.

Usage:
    python run_app.py                    # API with auto-reload (default)
    python run_app.py --mode prod        # API without reload, multiple workers
    python run_app.py --mode worker      # Celery worker (compliance + default queues)
    python run_app.py --mode beat        # Celery beat (monthly deactivation sweep)
    python run_app.py --mode init-db     # Create database tables
    python run_app.py --port 8001        # Custom port
"""

import argparse
import asyncio
import os
import subprocess
import sys

def print_banner():
    """Print application banner"""
    banner = """
╔═══════════════════════════════════════════════════════╗
║             🛒 Ecommerce Affiliates Backend           ║
╚═══════════════════════════════════════════════════════╝
    """
    print(banner)

def check_environment():
    """Check that the required settings are available"""
    print("\n🔍 Checking environment...")

    if os.path.exists(".env"):
        print("✅ .env file found")
    else:
        print("⚠️  .env file not found, reading settings from the environment")

    missing = [name for name in ("DATABASE_URL", "SECRET_KEY") if not os.environ.get(name)]
    if missing and not os.path.exists(".env"):
        print(f"❌ Missing required settings: {', '.join(missing)}")
        return False

    return True

def run_api(host="0.0.0.0", port=8000, reload=True, workers=1):
    """Run the FastAPI application"""
    print(f"\n🚀 Starting API on {host}:{port}")
    print(f"📖 API Docs: http://localhost:{port}/api/docs")
    print("\n" + "=" * 50)

    import uvicorn
    uvicorn.run(
        "ecommerce_api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1 if reload else workers,
        log_level="info"
    )

def run_celery(command):
    """Run a Celery worker or beat process"""
    args = [sys.executable, "-m", "celery", "-A", "ecommerce_api.core.celery_app", command, "--loglevel=info"]
    if command == "worker":
        args.extend(["-Q", "default,compliance"])

    print(f"\n⚙️  Starting Celery {command}")
    try:
        subprocess.run(args, check=True)
    except subprocess.CalledProcessError as e:
        print(f"❌ Celery {command} exited with code {e.returncode}")
        return e.returncode
    return 0

def create_tables():
    """Create all database tables"""
    from ecommerce_api.core.database import init_db, close_db

    async def _run():
        await init_db()
        await close_db()

    asyncio.run(_run())
    print("✅ Database tables created")

def main():
    parser = argparse.ArgumentParser(
        description="Ecommerce Affiliates Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--mode",
        choices=["dev", "prod", "worker", "beat", "init-db"],
        default="dev",
        help="What to run (default: dev)"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Uvicorn workers in prod mode (default: 4)"
    )

    args = parser.parse_args()

    print_banner()

    if not check_environment():
        return 1

    if args.mode == "init-db":
        create_tables()
        return 0
    if args.mode in ("worker", "beat"):
        return run_celery(args.mode)

    run_api(args.host, args.port, reload=args.mode == "dev", workers=args.workers)
    return 0

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)
