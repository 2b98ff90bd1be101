"""
Web route handlers for the leaderboard.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from aiohttp import web
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .database import LeaderboardStore
from .errors import (
    AlreadyExists,
    AuthenticationError,
    ConfigurationError,
    LeaderboardError,
    StoreUnavailable,
)
from .ranking import calculate_ranks_with_ties
from .session import AdminGuard, GuardState, require_admin
from .setup_flow import SETUP_COOKIE, SetupFlow, SetupState
from .validation import validate_entry

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).parent / "templates"


def format_timestamp(timestamp: Optional[str]) -> str:
    """
    Format a stored ISO timestamp for display.

    @param timestamp: ISO-8601 string from the store
    @return: "YYYY-MM-DD HH:MM", or a best-effort fallback
    """
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        return dt.strftime("%Y-%m-%d %H:%M")
    except (ValueError, TypeError, AttributeError):
        return timestamp[:19] if timestamp else "Unknown"


class WebHandlers:
    """Handles web routes and responses."""

    def __init__(
        self,
        store: LeaderboardStore,
        config: Any,
        guard: AdminGuard,
        setup_flow: SetupFlow,
        templates_path: str = str(TEMPLATES_PATH),
    ) -> None:
        self.store = store
        self.config = config
        self.guard = guard
        self.setup_flow = setup_flow

        self.jinja_env = Environment(
            loader=FileSystemLoader(templates_path),
            autoescape=select_autoescape(["html"]),
            auto_reload=False,  # Disable auto-reload for performance
            cache_size=50,  # Cache up to 50 templates
        )

    def _render(
        self,
        template_name: str,
        **context: Any,
    ) -> web.Response:
        template = self.jinja_env.get_template(template_name)
        html = template.render(config=self.config, **context)
        return web.Response(text=html, content_type="text/html")

    def _redirect(
        self,
        request: web.Request,
        route_name: str,
        **query: str,
    ) -> web.HTTPFound:
        """
        Build a redirect to a named route, carrying a one-shot message.

        @param request: Current request (for the router)
        @param route_name: Name the target route was registered under
        @param query: Message parameters such as success= or error=
        @return: Redirect exception, ready to be raised
        """
        url = request.app.router[route_name].url_for()
        if query:
            url = url.with_query(query)
        return web.HTTPFound(url)

    def _ranked_rows(
        self,
        entries: Sequence[Any],
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        ranked = calculate_ranks_with_ties(entries)
        if limit > 0:
            ranked = ranked[:limit]

        for row in ranked:
            row["formatted_date"] = format_timestamp(row["created_at"])
        return ranked

    # Public pages

    async def web_index(
        self,
        _: web.Request,
    ) -> web.Response:
        """
        Public leaderboard page.

        @param _: Unused request parameter
        @return: HTTP response with rendered index page
        """
        error = None
        try:
            entries = await self.store.list_all()
        except StoreUnavailable as e:
            logger.error("Error fetching leaderboard: %s", e)
            entries = []
            error = "The leaderboard is temporarily unavailable."

        leaderboard = self._ranked_rows(
            entries, self.config.get("ui", "max_leaderboard_entries") or 0
        )
        return self._render(
            "index.html",
            title="Leaderboard",
            leaderboard=leaderboard,
            total_entries=len(entries),
            error=error,
        )

    async def web_api_leaderboard(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        API endpoint for the ranked leaderboard.

        @param request: HTTP request object with an optional limit query parameter
        @return: JSON response containing ranked entries
        """
        try:
            limit = int(request.query.get("limit", 0))
        except ValueError:
            return web.json_response({"error": "limit must be an integer"}, status=400)

        try:
            entries = await self.store.list_all()
        except StoreUnavailable as e:
            return web.json_response({"error": e.message}, status=e.status)

        ranked = calculate_ranks_with_ties(entries)
        if limit > 0:
            ranked = ranked[:limit]

        return web.json_response(
            {
                "leaderboard": [
                    {
                        "rank": row["rank"],
                        "id": row["id"],
                        "player_name": row["player_name"],
                        "score": row["score"],
                        "created_at": row["created_at"],
                    }
                    for row in ranked
                ],
            }
        )

    # Admin session

    async def web_admin_login_page(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Admin login page. Already signed-in admins go straight to the dashboard.

        @param request: HTTP request object
        @return: HTTP response with rendered login page
        """
        if self.guard.check(request) is GuardState.AUTHENTICATED:
            raise self._redirect(request, "admin_dashboard")

        return self._render(
            "admin_login.html",
            title="Admin Login",
            error=request.query.get("error"),
            success=request.query.get("success"),
        )

    async def web_admin_login(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Check submitted credentials and start a session.

        @param request: HTTP request object with username and password form fields
        @return: Redirect to the dashboard, or back to the login page with an error
        """
        form = await request.post()
        username = str(form.get("username", "")).strip()
        password = str(form.get("password", ""))

        if not username or not password:
            raise self._redirect(
                request, "admin_login", error="Username and password are required"
            )

        try:
            valid = await self.store.verify_credentials(username, password)
        except StoreUnavailable:
            raise self._redirect(
                request, "admin_login", error="Authentication failed. Please try again."
            ) from None

        if not valid:
            logger.warning("Failed admin login for %s", username)
            raise self._redirect(
                request, "admin_login", error="Invalid username or password"
            )

        logger.info("Admin %s logged in", username)
        response = self._redirect(request, "admin_dashboard")
        self.guard.login(response, username)
        raise response

    async def web_admin_logout(
        self,
        request: web.Request,
    ) -> web.Response:
        response = self._redirect(request, "admin_login")
        self.guard.logout(response)
        raise response

    # Admin dashboard

    @require_admin
    async def web_admin_dashboard(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Admin management page listing every ranked entry.

        @param request: HTTP request object; ?edit=<id> opens an entry for editing
        @return: HTTP response with rendered dashboard
        """
        error = request.query.get("error")
        try:
            entries = await self.store.list_all()
        except StoreUnavailable:
            entries = []
            error = "Failed to load leaderboard data"

        editing_id = request.query.get("edit")
        if editing_id and not any(entry.id == editing_id for entry in entries):
            editing_id = None
            error = error or "Entry not found"

        return self._render(
            "admin_dashboard.html",
            title="Admin Dashboard",
            leaderboard=self._ranked_rows(entries),
            total_entries=len(entries),
            editing_id=editing_id,
            admin_username=self.guard.username(request),
            error=error,
            success=request.query.get("success"),
        )

    @require_admin
    async def web_admin_add_entry(
        self,
        request: web.Request,
    ) -> web.Response:
        form = await request.post()
        try:
            player_name, score = validate_entry(form.get("player_name"), form.get("score"))
            await self.store.insert(player_name, score)
        except LeaderboardError as e:
            raise self._redirect(request, "admin_dashboard", error=e.message) from None

        raise self._redirect(
            request, "admin_dashboard", success="Player added successfully"
        )

    @require_admin
    async def web_admin_update_entry(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Save an edited entry.

        @param request: HTTP request with the entry id in the path and player_name/score form fields
        @return: Redirect to the dashboard with a result message
        """
        entry_id = request.match_info["entry_id"]
        form = await request.post()
        try:
            player_name, score = validate_entry(form.get("player_name"), form.get("score"))
            await self.store.update(entry_id, player_name, score)
        except LeaderboardError as e:
            logger.warning("Error updating entry %s: %s", entry_id, e)
            raise self._redirect(request, "admin_dashboard", error=e.message) from None

        raise self._redirect(
            request, "admin_dashboard", success="Entry updated successfully"
        )

    @require_admin
    async def web_admin_delete_entry(
        self,
        request: web.Request,
    ) -> web.Response:
        entry_id = request.match_info["entry_id"]
        try:
            await self.store.delete_one(entry_id)
        except StoreUnavailable:
            raise self._redirect(
                request, "admin_dashboard", error="Failed to delete entry"
            ) from None

        raise self._redirect(
            request, "admin_dashboard", success="Entry deleted successfully"
        )

    @require_admin
    async def web_admin_clear(
        self,
        request: web.Request,
    ) -> web.Response:
        try:
            await self.store.delete_all()
        except StoreUnavailable:
            raise self._redirect(
                request, "admin_dashboard", error="Failed to clear leaderboard"
            ) from None

        raise self._redirect(
            request, "admin_dashboard", success="Leaderboard cleared successfully"
        )

    # First-admin setup

    async def web_admin_setup_page(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Setup page; what it shows depends on the setup flow state.

        @param request: HTTP request object
        @return: HTTP response with rendered setup page
        """
        error = request.query.get("error")
        created = request.query.get("created")

        try:
            state = await self.setup_flow.current_state(request.cookies.get(SETUP_COOKIE))
        except StoreUnavailable:
            state = SetupState.AWAITING_KEY
            error = "Database error occurred."

        if created and state is SetupState.DISABLED:
            state = SetupState.ACCOUNT_CREATED

        return self._render(
            "admin_setup.html",
            title="Admin Setup",
            state=state.value,
            setup_configured=self.config.setup_key_configured,
            min_password_length=self.config.get("admin", "min_password_length"),
            created=created,
            error=error,
        )

    async def web_api_verify_setup(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        API endpoint checking the setup key.

        Body: {"setupKey": "..."}. Responds 200 {"success": true} and sets the
        setup cookie, or 401/403/500 {"error": ...}.

        @param request: HTTP request object with a JSON body
        @return: JSON response
        """
        try:
            body = await request.json()
        except ValueError:
            body = {}
        setup_key = body.get("setupKey") if isinstance(body, dict) else None

        try:
            token = await self.setup_flow.verify_key(setup_key)
        except AlreadyExists as e:
            return web.json_response({"error": e.message}, status=403)
        except StoreUnavailable:
            return web.json_response({"error": "Database error occurred."}, status=500)
        except (AuthenticationError, ConfigurationError) as e:
            return web.json_response({"error": e.message}, status=e.status)

        response = web.json_response({"success": True})
        self._set_setup_cookie(response, token)
        return response

    async def web_admin_setup_verify(
        self,
        request: web.Request,
    ) -> web.Response:
        form = await request.post()
        try:
            token = await self.setup_flow.verify_key(form.get("setup_key"))
        except LeaderboardError as e:
            raise self._redirect(request, "admin_setup", error=e.message) from None

        response = self._redirect(request, "admin_setup")
        self._set_setup_cookie(response, token)
        raise response

    async def web_admin_setup_create(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Create the first admin account.

        @param request: HTTP request with username, password and confirm_password form fields
        @return: Redirect to the setup page with the outcome
        """
        form = await request.post()
        try:
            await self.setup_flow.create_account(
                request.cookies.get(SETUP_COOKIE),
                form.get("username"),
                form.get("password"),
                form.get("confirm_password"),
            )
        except StoreUnavailable as e:
            raise self._redirect(
                request, "admin_setup", error=f"Failed to create admin user: {e.message}"
            ) from None
        except LeaderboardError as e:
            raise self._redirect(request, "admin_setup", error=e.message) from None

        username = str(form.get("username", "")).strip()
        response = self._redirect(request, "admin_setup", created=username)
        response.del_cookie(SETUP_COOKIE, path="/")
        raise response

    def _set_setup_cookie(
        self,
        response: web.StreamResponse,
        token: str,
    ) -> None:
        response.set_cookie(
            SETUP_COOKIE,
            token,
            max_age=self.setup_flow.token_max_age,
            httponly=True,
            samesite="Strict",
            path="/",
        )
