import argparse
import os
import signal
import sys
import traceback
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# Load .env before reading PORT/HOST/ENVIRONMENT
env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _unhandled_exception(exc_type, exc_value, exc_tb):
    """Log unhandled exceptions before the process exits."""
    if exc_type is KeyboardInterrupt:
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    msg = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    print("Unhandled exception (process will exit):\n" + msg, file=sys.stderr, flush=True)
    sys.__excepthook__(exc_type, exc_value, exc_tb)


def run_server() -> None:
    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "127.0.0.1")
    environment = os.getenv("ENVIRONMENT", "development").lower()

    print(f"Starting INTELIGENT MUNGA backend ({environment})...")
    print(f"API available at http://{host}:{port}/api/health")
    print("Press CTRL+C to stop the server")

    def signal_handler(sig, frame):
        print("\n\nShutdown signal received. Stopping server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, signal_handler)

    # A single worker: the session and watchdog live in this process
    uvicorn.run(
        "munga_web.main:app",
        host=host,
        port=port,
        reload=environment == "development",
        log_level="info" if environment == "production" else "debug",
    )


if __name__ == "__main__":
    root_dir = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, root_dir)
    sys.excepthook = _unhandled_exception

    parser = argparse.ArgumentParser(description="INTELIGENT MUNGA analyst terminal")
    parser.add_argument("mode", nargs="?", choices=["web", "terminal"], default="web")
    args = parser.parse_args()

    try:
        if args.mode == "terminal":
            from ui.terminal import main as terminal_main

            terminal_main()
        else:
            run_server()
    except KeyboardInterrupt:
        print("\n\nShutdown complete.")
        sys.exit(0)
