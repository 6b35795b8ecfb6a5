"""Simple server runner: `python -m orchestrator.run_server`."""
import signal
import sys

import uvicorn

from orchestrator.core.config import settings


def handle_signal(sig, frame):
    print(f"\nReceived signal {sig}, shutting down gracefully...")
    sys.exit(0)


signal.signal(signal.SIGINT, handle_signal)
signal.signal(signal.SIGTERM, handle_signal)

if __name__ == "__main__":
    print("=" * 50)
    print("  Starting RI Quote Orchestrator")
    print("=" * 50)
    uvicorn.run(
        "orchestrator.main:app",
        host="127.0.0.1",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )
