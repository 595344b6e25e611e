#!/usr/bin/env python3
"""
Development startup script.

Starts the mock backend and the cashier terminal in development mode.
"""

import os
import sys
import subprocess
import time
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import jwt
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_token():
    """Check if a bearer token is configured."""
    env_file = PROJECT_ROOT / "config" / ".env"
    if os.getenv("POS_API_TOKEN"):
        print("✓ Bearer token found in environment")
        return True
    if env_file.exists() and "POS_API_TOKEN=" in env_file.read_text():
        print("✓ Bearer token found in config/.env")
        return True

    print("✗ No bearer token configured")
    print("\nRun: python scripts/issue_token.py --write")
    return False


def start_services():
    """Start both services in development mode."""
    processes = []

    try:
        # Start Mock Backend
        print("\n🏪 Starting Mock Backend on http://localhost:8001 ...")
        backend_process = subprocess.Popen(
            [
                sys.executable, "-m", "uvicorn",
                "mock_backend.main:app",
                "--reload",
                "--host", "0.0.0.0",
                "--port", "8001",
            ],
            cwd=PROJECT_ROOT,
        )
        processes.append(backend_process)

        # Wait a bit for the backend to start
        time.sleep(2)

        # Start Cashier Terminal
        print("🧾 Starting Cashier Terminal on http://localhost:8000 ...")
        terminal_process = subprocess.Popen(
            [
                sys.executable, "-m", "uvicorn",
                "pos_client.main:app",
                "--reload",
                "--host", "0.0.0.0",
                "--port", "8000",
            ],
            cwd=PROJECT_ROOT,
        )
        processes.append(terminal_process)

        print("\n" + "=" * 60)
        print("Services started successfully!")
        print("=" * 60)
        print("\n📍 Terminal API: http://localhost:8000/docs")
        print("📍 Backend API:  http://localhost:8001/docs")
        print("\nPress Ctrl+C to stop all services")
        print("=" * 60)

        # Wait for processes
        for p in processes:
            p.wait()

    except KeyboardInterrupt:
        print("\n\nShutting down services...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.wait()
        print("All services stopped.")


def main():
    print("=" * 60)
    print("Kape POS - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_token():
        response = input("\nIssue a development token now? [Y/n]: ")
        if response.lower() != "n":
            subprocess.run([sys.executable, str(PROJECT_ROOT / "scripts" / "issue_token.py"), "--write"])
        else:
            print("A bearer token is required. Exiting.")
            sys.exit(1)

    print("\n✓ All checks passed!")

    # Start services
    start_services()


if __name__ == "__main__":
    main()
