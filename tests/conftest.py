import pytest

from leaderboard.config import LeaderboardConfig
from leaderboard.database import LeaderboardStore
from leaderboard.server import LeaderboardSystem

SETUP_KEY = "test-setup-key"
SESSION_SECRET = "test-session-secret"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct-horse-battery"

ENV_VARS = (
    "ADMIN_SETUP_KEY",
    "SESSION_SECRET",
    "SITE_NAME",
    "SUBTITLE",
    "SHOW_TIMESTAMPS",
    "MAX_LEADERBOARD_ENTRIES",
    "SESSION_MAX_AGE",
    "SETUP_TOKEN_MAX_AGE",
    "MIN_PASSWORD_LENGTH",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def config(tmp_path, clean_env):
    cfg = LeaderboardConfig(str(tmp_path / "config.json"))
    cfg.set_secrets(setup_key=SETUP_KEY, session_secret=SESSION_SECRET)
    return cfg


@pytest.fixture
async def store(tmp_path):
    store = LeaderboardStore(str(tmp_path / "store.db"))
    await store.init_db()
    return store


@pytest.fixture
def system(tmp_path, config):
    return LeaderboardSystem(db_path=str(tmp_path / "web.db"), config=config)


@pytest.fixture
async def client(aiohttp_client, system):
    return await aiohttp_client(system.create_app())


@pytest.fixture
async def admin_client(client, system):
    await system.store.create_admin_credential(ADMIN_USERNAME, ADMIN_PASSWORD)
    resp = await client.post(
        "/admin/login",
        data={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        allow_redirects=False,
    )
    assert resp.status == 302
    assert resp.headers["Location"] == "/admin/dashboard"
    return client
