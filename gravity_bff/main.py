"""
Main application entry point for the Gravity BFF.

Wires configuration, the item store, the cache backend, the stream service
and the HTTP server together, and tears them down in reverse order.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from .api import StreamAuthenticator, StreamServer
from .cache import StreamCache, create_cache
from .config import AppConfig, load_config
from .data import RepositoryFactory, run_migrations
from .exceptions import handle_unexpected_error
from .services import StreamService


class GravityApp:
    """Main application class for the Gravity BFF."""

    def __init__(self):
        self.config: Optional[AppConfig] = None
        self.repository_factory: Optional[RepositoryFactory] = None
        self.cache: Optional[StreamCache] = None
        self.stream_service: Optional[StreamService] = None
        self.server: Optional[StreamServer] = None
        self.running = False

        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
        self.logger = logging.getLogger(__name__)

    async def initialize(self, config: Optional[AppConfig] = None):
        """Initialize all application components.

        Args:
            config: Pre-built configuration; loaded from the environment when omitted
        """
        try:
            self.logger.info("Initializing Gravity BFF...")

            self.config = config or load_config()
            logging.getLogger().setLevel(self.config.log_level.value)
            self.logger.info("Configuration loaded successfully")

            await self._initialize_database()

            self.cache = create_cache(self.config.cache)
            repository = await self.repository_factory.get_stream_repository()
            self.stream_service = StreamService(repository, self.cache, self.config.cache)

            authenticator = StreamAuthenticator(self.config.auth)
            self.server = StreamServer(
                config=self.config,
                stream_service=self.stream_service,
                authenticator=authenticator,
                database=await self.repository_factory.get_connection(),
            )

            self.logger.info("All components initialized successfully")

        except Exception as e:
            error = handle_unexpected_error(e)
            self.logger.error(f"Failed to initialize application: {error.to_log_string()}")
            await self._close_resources()
            raise

    async def _initialize_database(self):
        """Open the item store and bring its schema up to date."""
        db_path = self.config.database.path
        self.logger.info(f"Initializing database at {db_path}...")

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.repository_factory = RepositoryFactory(
            backend="sqlite",
            db_path=db_path,
            pool_size=self.config.database.pool_size,
        )
        connection = await self.repository_factory.get_connection()
        applied = await run_migrations(connection)
        self.logger.info(f"Database ready ({applied} migration(s) applied)")

    async def start(self):
        """Serve requests until a shutdown signal arrives."""
        if not self.server:
            raise RuntimeError("Application not initialized. Call initialize() first.")

        self.running = True
        await self.server.start_server()

        # Installed after uvicorn so these handlers take precedence
        for sig in [signal.SIGINT, signal.SIGTERM]:
            signal.signal(sig, self._signal_handler)

        self.logger.info("Gravity BFF is now online")
        while self.running:
            await asyncio.sleep(1)

    async def stop(self):
        """Stop the application gracefully, shutting down all services."""
        self.logger.info("Initiating graceful shutdown...")
        self.running = False

        if self.server:
            await self.server.stop_server()

        await self._close_resources()
        self.logger.info("Gravity BFF stopped cleanly")

    async def _close_resources(self):
        if self.cache:
            await self.cache.close()
            self.cache = None
        if self.repository_factory:
            await self.repository_factory.close()
            self.repository_factory = None

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals (SIGINT, SIGTERM)."""
        signal_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        self.running = False


async def main():
    """Main entry point for the Gravity BFF."""
    app = GravityApp()

    try:
        await app.initialize()
        await app.start()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        await app.stop()
        raise

    await app.stop()


if __name__ == "__main__":
    asyncio.run(main())
