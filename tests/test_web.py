from leaderboard.config import LeaderboardConfig
from leaderboard.server import LeaderboardSystem
from leaderboard.setup_flow import SETUP_COOKIE

from .conftest import ADMIN_PASSWORD, ADMIN_USERNAME, SETUP_KEY


async def _seed(store, *rows):
    return [await store.insert(name, score) for name, score in rows]


# Public view

async def test_index_empty(client):
    resp = await client.get("/")

    assert resp.status == 200
    assert "No entries yet!" in await resp.text()


async def test_index_shows_ranked_entries(client, system):
    await _seed(system.store, ("Carol", 90), ("Alice", 100), ("Bob", 100))

    resp = await client.get("/")
    html = await resp.text()

    assert resp.status == 200
    assert html.index("Alice") < html.index("Bob") < html.index("Carol")
    assert html.count("1st") == 2
    assert "2nd" in html
    assert "3rd" not in html


async def test_index_escapes_player_names(client, system):
    await _seed(system.store, ("<script>alert(1)</script>", 5))

    html = await (await client.get("/")).text()

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


async def test_api_leaderboard(client, system):
    await _seed(system.store, ("A", 100), ("B", 90), ("C", 90), ("D", 80))

    resp = await client.get("/api/leaderboard")
    data = await resp.json()

    assert resp.status == 200
    assert [row["rank"] for row in data["leaderboard"]] == [1, 2, 2, 3]
    assert [row["player_name"] for row in data["leaderboard"]] == ["A", "B", "C", "D"]

    limited = await (await client.get("/api/leaderboard?limit=2")).json()
    assert len(limited["leaderboard"]) == 2

    bad = await client.get("/api/leaderboard?limit=many")
    assert bad.status == 400


# Admin session guard

async def test_dashboard_requires_login(client):
    resp = await client.get("/admin/dashboard", allow_redirects=False)

    assert resp.status == 302
    assert resp.headers["Location"] == "/admin"


async def test_forged_flag_cookie_is_rejected(client):
    client.session.cookie_jar.update_cookies({"admin_session": "true"})

    resp = await client.get("/admin/dashboard", allow_redirects=False)

    assert resp.status == 302


async def test_mutations_without_session_never_reach_store(client, system):
    (entry,) = await _seed(system.store, ("Alice", 10))

    for path, data in [
        ("/admin/entries", {"player_name": "Mallory", "score": "999"}),
        (f"/admin/entries/{entry.id}/update", {"player_name": "Mallory", "score": "999"}),
        (f"/admin/entries/{entry.id}/delete", {}),
        ("/admin/entries/clear", {}),
    ]:
        resp = await client.post(path, data=data, allow_redirects=False)
        assert resp.status == 302
        assert resp.headers["Location"] == "/admin"

    entries = await system.store.list_all()
    assert [(e.player_name, e.score) for e in entries] == [("Alice", 10)]


async def test_login_with_wrong_password(client, system):
    await system.store.create_admin_credential(ADMIN_USERNAME, ADMIN_PASSWORD)

    resp = await client.post(
        "/admin/login",
        data={"username": ADMIN_USERNAME, "password": "wrong-password"},
    )

    assert resp.status == 200
    assert "Invalid username or password" in await resp.text()
    resp = await client.get("/admin/dashboard", allow_redirects=False)
    assert resp.status == 302


async def test_login_page_redirects_when_logged_in(admin_client):
    resp = await admin_client.get("/admin", allow_redirects=False)

    assert resp.status == 302
    assert resp.headers["Location"] == "/admin/dashboard"


async def test_logout_ends_session(admin_client):
    resp = await admin_client.post("/admin/logout", allow_redirects=False)
    assert resp.status == 302

    resp = await admin_client.get("/admin/dashboard", allow_redirects=False)
    assert resp.status == 302
    assert resp.headers["Location"] == "/admin"


# Admin view

async def test_dashboard_lists_entries(admin_client, system):
    await _seed(system.store, ("Alice", 100), ("Bob", 50))

    resp = await admin_client.get("/admin/dashboard")
    html = await resp.text()

    assert resp.status == 200
    assert "Signed in as admin" in html
    assert "Leaderboard Entries (2)" in html
    assert html.index("Alice") < html.index("Bob")


async def test_add_entry(admin_client, system):
    resp = await admin_client.post(
        "/admin/entries", data={"player_name": "  Dana ", "score": "42"}
    )

    assert "Player added successfully" in await resp.text()
    entries = await system.store.list_all()
    assert [(e.player_name, e.score) for e in entries] == [("Dana", 42)]


async def test_add_entry_rejects_bad_input(admin_client, system):
    resp = await admin_client.post(
        "/admin/entries", data={"player_name": "Dana", "score": "-5"}
    )

    assert "Score must be a valid non-negative number" in await resp.text()
    assert await system.store.list_all() == []


async def test_oversized_score_is_reported_not_a_server_error(admin_client, system):
    (entry,) = await _seed(system.store, ("Alice", 10))

    for path in ("/admin/entries", f"/admin/entries/{entry.id}/update"):
        resp = await admin_client.post(
            path, data={"player_name": "Big", "score": "99999999999999999999"}
        )
        assert resp.status == 200
        assert "Score too large" in await resp.text()

    entries = await system.store.list_all()
    assert [(e.player_name, e.score) for e in entries] == [("Alice", 10)]


async def test_edit_and_update_entry(admin_client, system):
    (entry,) = await _seed(system.store, ("Alice", 10))

    resp = await admin_client.get(f"/admin/dashboard?edit={entry.id}")
    assert f'action="/admin/entries/{entry.id}/update"' in await resp.text()

    resp = await admin_client.post(
        f"/admin/entries/{entry.id}/update", data={"player_name": "Alicia", "score": "20"}
    )

    assert "Entry updated successfully" in await resp.text()
    updated = await system.store.get_entry(entry.id)
    assert (updated.player_name, updated.score) == ("Alicia", 20)


async def test_update_missing_entry(admin_client):
    resp = await admin_client.post(
        "/admin/entries/missing/update", data={"player_name": "Ghost", "score": "1"}
    )

    assert "not found" in await resp.text()


async def test_delete_entry_and_unknown_id(admin_client, system):
    gone, keep = await _seed(system.store, ("Gone", 10), ("Keep", 20))

    resp = await admin_client.post(f"/admin/entries/{gone.id}/delete")
    assert "Entry deleted successfully" in await resp.text()

    resp = await admin_client.post("/admin/entries/not-a-real-id/delete")
    assert "Entry deleted successfully" in await resp.text()

    assert [e.id for e in await system.store.list_all()] == [keep.id]


async def test_clear_all(admin_client, system):
    await _seed(system.store, ("A", 1), ("B", 2))

    resp = await admin_client.post("/admin/entries/clear")

    assert "Leaderboard cleared successfully" in await resp.text()
    assert await system.store.list_all() == []


# Setup flow

async def test_verify_setup_wrong_key(client):
    resp = await client.post("/api/admin/verify-setup", json={"setupKey": "nope"})

    assert resp.status == 401
    data = await resp.json()
    assert "Invalid setup key" in data["error"]
    assert SETUP_KEY not in data["error"]
    assert SETUP_COOKIE not in resp.cookies


async def test_verify_setup_bad_body_is_rejected(client):
    resp = await client.post("/api/admin/verify-setup", data="not json")

    assert resp.status == 401


async def test_verify_setup_success(client):
    resp = await client.post("/api/admin/verify-setup", json={"setupKey": SETUP_KEY})

    assert resp.status == 200
    assert await resp.json() == {"success": True}
    assert SETUP_COOKIE in resp.cookies


async def test_verify_setup_when_admin_exists(client, system):
    await system.store.create_admin_credential(ADMIN_USERNAME, ADMIN_PASSWORD)

    resp = await client.post("/api/admin/verify-setup", json={"setupKey": SETUP_KEY})

    assert resp.status == 403
    assert "already exist" in (await resp.json())["error"]


async def test_verify_setup_without_configured_key(aiohttp_client, tmp_path, clean_env):
    config = LeaderboardConfig(str(tmp_path / "no-key.json"))
    system = LeaderboardSystem(db_path=str(tmp_path / "no-key.db"), config=config)
    client = await aiohttp_client(system.create_app())

    resp = await client.post("/api/admin/verify-setup", json={"setupKey": "anything"})

    assert resp.status == 500
    assert "ADMIN_SETUP_KEY" in (await resp.json())["error"]


async def test_setup_page_flow_end_to_end(client, system):
    html = await (await client.get("/admin/setup")).text()
    assert 'action="/admin/setup/verify"' in html

    resp = await client.post("/admin/setup/verify", data={"setup_key": "wrong"})
    html = await resp.text()
    assert "Invalid setup key" in html
    assert 'action="/admin/setup/create"' not in html

    resp = await client.post("/admin/setup/create", data={
        "username": "sneaky", "password": "password123", "confirm_password": "password123",
    })
    assert "Setup key has not been verified" in await resp.text()
    assert await system.store.admin_exists() is False

    resp = await client.post("/admin/setup/verify", data={"setup_key": SETUP_KEY})
    assert 'action="/admin/setup/create"' in await resp.text()

    resp = await client.post("/admin/setup/create", data={
        "username": "root", "password": "password123", "confirm_password": "different1",
    })
    html = await resp.text()
    assert "Passwords do not match" in html
    assert 'action="/admin/setup/create"' in html

    resp = await client.post("/admin/setup/create", data={
        "username": "root", "password": "password123", "confirm_password": "password123",
    })
    assert 'Admin user "root" created successfully' in await resp.text()
    assert await system.store.verify_credentials("root", "password123") is True

    html = await (await client.get("/admin/setup")).text()
    assert "Admin setup is disabled" in html


async def test_new_admin_can_log_in(client):
    await client.post("/api/admin/verify-setup", json={"setupKey": SETUP_KEY})
    await client.post("/admin/setup/create", data={
        "username": "root", "password": "password123", "confirm_password": "password123",
    })

    resp = await client.post("/admin/login", data={"username": "root", "password": "password123"})

    assert resp.status == 200
    assert "Admin Dashboard" in await resp.text()
