"""
Main LeaderboardSystem class that wires all components together.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from aiohttp import web, web_runner
import aiohttp_cors

from .config import LeaderboardConfig
from .database import LeaderboardStore
from .session import AdminGuard
from .setup_flow import SetupFlow
from .tokens import TokenSigner
from .web_handlers import WebHandlers

logger = logging.getLogger(__name__)

STATIC_PATH = Path(__file__).parent / "static"


class LeaderboardSystem:
    """Leaderboard web application with public and admin views."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        web_port: int = 8081,
        db_path: str = "leaderboard.db",
        config_path: str = "leaderboard_config.json",
        config: Optional[LeaderboardConfig] = None,
    ) -> None:
        self.host = host
        self.web_port = web_port
        self.db_path = db_path

        # Load configuration
        self.config = config if config is not None else LeaderboardConfig(config_path)
        # Initialize components
        self.store = LeaderboardStore(db_path)
        signer = TokenSigner(self.config.get_session_secret())
        self.guard = AdminGuard(signer, self.config.get("admin", "session_max_age"))
        self.setup_flow = SetupFlow(self.store, self.config, signer)
        self.web_handlers = WebHandlers(
            self.store, self.config, self.guard, self.setup_flow
        )

    async def init_db(self) -> None:
        """
        Initialize the database.

        Creates database tables and performs any necessary setup.
        """
        await self.store.init_db()

    async def _on_startup(self, _: web.Application) -> None:
        await self.init_db()

    def create_app(self) -> web.Application:
        """
        Build the aiohttp application with every route registered.

        @return: Configured web application
        """
        app = web.Application()
        app.on_startup.append(self._on_startup)

        handlers = self.web_handlers

        # Static files route
        app.router.add_static("/static/", path=str(STATIC_PATH), name="static")

        # Public routes
        app.router.add_get("/", handlers.web_index, name="index")
        app.router.add_get(
            "/api/leaderboard", handlers.web_api_leaderboard, name="api_leaderboard"
        )

        # Admin routes
        app.router.add_get("/admin", handlers.web_admin_login_page, name="admin_login")
        app.router.add_post("/admin/login", handlers.web_admin_login)
        app.router.add_post("/admin/logout", handlers.web_admin_logout)
        app.router.add_get(
            "/admin/dashboard", handlers.web_admin_dashboard, name="admin_dashboard"
        )
        app.router.add_post("/admin/entries", handlers.web_admin_add_entry)
        app.router.add_post("/admin/entries/clear", handlers.web_admin_clear)
        app.router.add_post(
            "/admin/entries/{entry_id}/update", handlers.web_admin_update_entry
        )
        app.router.add_post(
            "/admin/entries/{entry_id}/delete", handlers.web_admin_delete_entry
        )

        # Setup routes
        app.router.add_get("/admin/setup", handlers.web_admin_setup_page, name="admin_setup")
        app.router.add_post("/admin/setup/verify", handlers.web_admin_setup_verify)
        app.router.add_post("/admin/setup/create", handlers.web_admin_setup_create)
        app.router.add_post("/api/admin/verify-setup", handlers.web_api_verify_setup)

        # Setup CORS for the API routes
        cors = aiohttp_cors.setup(
            app,
            defaults={
                "*": aiohttp_cors.ResourceOptions(
                    allow_credentials=True,
                    expose_headers="*",
                    allow_headers="*",
                    allow_methods="*",
                )
            },
        )
        for route in list(app.router.routes()):
            if route.resource is not None and route.resource.canonical.startswith("/api/"):
                cors.add(route)

        return app

    async def start_web_server(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> web_runner.AppRunner:
        """
        Start the web server.

        @param host: Host address to bind the server to (default uses configured host)
        @param port: Port number to use (default uses configured web_port)
        @return: AppRunner instance for the web server
        """
        if host is None:
            host = self.host
        if port is None:
            port = self.web_port

        app_runner = web_runner.AppRunner(self.create_app())
        await app_runner.setup()

        site = web_runner.TCPSite(app_runner, host, port)
        await site.start()

        logger.info("Web server running on http://%s:%s", host, port)
        return app_runner

    async def run(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        """
        Run the web server until interrupted.

        @param host: Web server host address (default uses configured host)
        @param port: Web server port (default uses configured web_port)
        """
        host = host or self.host
        port = port or self.web_port

        web_server_runner = await self.start_web_server(host, port)

        print("\nLeaderboard Running!")
        print(f"Public leaderboard: http://{host}:{port}/")
        print(f"Admin panel:        http://{host}:{port}/admin")
        if not self.config.setup_key_configured:
            print("Admin setup is disabled until ADMIN_SETUP_KEY is set")
        print("\nPress Ctrl+C to stop...\n")

        try:
            await asyncio.Event().wait()
        finally:
            print("\nShutting down server...")
            await web_server_runner.cleanup()

    async def print_full_leaderboard(self) -> None:
        """
        Print the complete leaderboard to console.

        Delegates to the store's print method.
        """
        await self.store.print_full_leaderboard()
