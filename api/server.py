"""Server entry point for running the FastAPI application."""

import asyncio
import os
import signal

import structlog
import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = structlog.get_logger(__name__)

DEFAULT_HOST = os.getenv("GISTEDITOR_HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("GISTEDITOR_PORT", "3000"))
APP_PATH = "api.app:app"


class Server:
    """Custom server wrapper with proper signal handling."""

    def __init__(self, config: uvicorn.Config):
        self.server = uvicorn.Server(config)

    def handle_exit(self, _sig, _frame):
        """Handle exit signals."""
        logger.info("server_shutdown_signal_received")
        self.server.should_exit = True

    async def serve(self):
        """Run the server with proper signal handling."""
        signal.signal(signal.SIGINT, self.handle_exit)
        signal.signal(signal.SIGTERM, self.handle_exit)

        await self.server.serve()


def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, reload: bool = False):
    """Run the local gist editor server."""
    print(f"Gist Editor is running at http://{host}:{port}")
    print('Make sure you are logged in with GitHub CLI: gh auth login')
    print("Press Ctrl+C to stop the server.\n")

    options = {"host": host, "port": port, "log_level": "info", "access_log": False}

    if reload:
        # Reload runs the app in a subprocess, so Ctrl-C handling is uvicorn's own
        uvicorn.run(APP_PATH, reload=True, **options)
        return

    asyncio.run(Server(uvicorn.Config(APP_PATH, **options)).serve())


if __name__ == "__main__":
    run_server(reload=True)
