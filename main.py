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
    """Print unhandled exceptions so the process manager log shows the cause before restart."""
    if exc_type is KeyboardInterrupt:
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    msg = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    print("Unhandled exception (process will exit):\n" + msg, file=sys.stderr, flush=True)
    sys.__excepthook__(exc_type, exc_value, exc_tb)


if __name__ == "__main__":
    """
    Entry point for the identity service.
    Starts the API and the cache housekeeping job.
    """
    root_dir = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, root_dir)

    sys.excepthook = _unhandled_exception

    PORT = int(os.getenv("PORT", "8000"))
    HOST = os.getenv("HOST", "127.0.0.1")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
    RELOAD = ENVIRONMENT == "development"

    print(f"Starting identity service from {root_dir}...")
    print(f"Environment: {ENVIRONMENT}")
    print(f"Listening on http://{HOST}:{PORT}")

    def signal_handler(sig, frame):
        print("\n\nShutdown signal received. Stopping server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, signal_handler)

    try:
        # Single worker: sessions and handshakes live in process memory
        uvicorn.run(
            "identity_web.main:app",
            host=HOST,
            port=PORT,
            reload=RELOAD,
            log_level="info" if ENVIRONMENT == "production" else "debug",
        )
    except KeyboardInterrupt:
        print("\n\nShutdown complete.")
        sys.exit(0)
    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)
