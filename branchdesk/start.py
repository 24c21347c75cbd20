#!/usr/bin/env python3
"""
BranchDesk - Start the backend API
Run: python start.py [port]
"""

import os
import socket
import subprocess
import sys
from pathlib import Path


class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    CYAN = '\033[96m'
    WHITE = '\033[97m'
    RESET = '\033[0m'


def print_colored(message, color=Colors.WHITE):
    """Print colored message"""
    print(f"{color}{message}{Colors.RESET}")


def port_in_use(port):
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        return sock.connect_ex(('127.0.0.1', port)) == 0
    finally:
        sock.close()


def check_requirements(project_root):
    """Warn about missing configuration; the API still starts and logs what is missing."""
    if not (project_root / ".env").exists() and not (project_root / "backend" / ".env").exists():
        print_colored("⚠️  No .env file found. Set SUPABASE_URL and SUPABASE_KEY in branchdesk/.env", Colors.YELLOW)


def start_backend(project_root, port=8000):
    """Start the FastAPI backend with uvicorn (auto-reload)"""
    print_colored("🔧 Starting Backend Server...", Colors.YELLOW)

    if port_in_use(port):
        print_colored(f"⚠️  Port {port} is in use. Using port {port + 1}.", Colors.YELLOW)
        port += 1

    backend_dir = project_root / "backend"
    env = os.environ.copy()
    env["PYTHONPATH"] = str(backend_dir)

    cmd = [
        sys.executable,
        "-m", "uvicorn",
        "app.main:app",
        "--host", "0.0.0.0",
        "--port", str(port),
        "--reload",
    ]
    proc = subprocess.Popen(cmd, cwd=str(backend_dir), env=env, stdout=None, stderr=subprocess.STDOUT)
    return proc, port


def main():
    project_root = Path(__file__).parent
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000

    print_colored("🚀 Starting BranchDesk", Colors.GREEN)
    print_colored("=" * 50, Colors.GREEN)
    check_requirements(project_root)

    proc, port = start_backend(project_root, port)
    print_colored(f"   Backend API:    http://localhost:{port}", Colors.WHITE)
    print_colored(f"   Health Check:   http://localhost:{port}/health", Colors.WHITE)
    print_colored("💡 Press Ctrl+C to stop", Colors.YELLOW)

    try:
        proc.wait()
    except KeyboardInterrupt:
        print_colored("🛑 Stopping backend...", Colors.YELLOW)
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
        print_colored("✅ Stopped", Colors.GREEN)

    if proc.returncode not in (0, None, -15):
        print_colored(f"❌ Backend exited with code {proc.returncode}", Colors.RED)
        sys.exit(proc.returncode)


if __name__ == "__main__":
    main()
