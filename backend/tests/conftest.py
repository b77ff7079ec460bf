"""Shared fixtures for tracker tests."""

import httpx
import pytest

from config import Settings
from database import create_engine, create_session_factory, init_schema
from middleware.rate_limit import limiter
from services.account_registry import AccountRegistry
from services.ncore_client import NcoreClient
from services.snapshot_store import SnapshotStore

LABEL_ROW = '<div class="profil_jobb_elso2">{label}</div><div class="profil_jobb_masodik2">{value}</div>'


def build_profile_page(
    rank: str = "5.",
    upload: str = "12.34 TiB",
    current_upload: str = "1.2 GiB",
    current_download: str = "300 MiB",
    points: str = "1 000",
    seeding_header: str = "Seedelt torrentek (12)",
    extra_rows: dict[str, str] | None = None,
) -> str:
    rows = {
        "Helyezés:": rank,
        "Feltöltés:": upload,
        "Aktuális feltöltés:": current_upload,
        "Aktuális letöltés:": current_download,
        "Pontok száma:": points,
        **(extra_rows or {}),
    }
    body = "\n".join(LABEL_ROW.format(label=k, value=v) for k, v in rows.items())
    return (
        "<html><body>"
        f'<div class="userbox_tartalom_mini">\n{body}\n</div>'
        f'<div class="lista_mini_fej">{seeding_header}</div>'
        "</body></html>"
    )


@pytest.fixture
def profile_page():
    """Builder for profile page HTML."""
    return build_profile_page


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ncore_nick="nick",
        ncore_pass="secret",
        database_path=str(tmp_path / "data"),
        fetch_pause_seconds=0,
        shutdown_grace_seconds=1,
        web_dir=str(tmp_path / "web"),
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def registry(session_factory):
    return AccountRegistry(session_factory)


@pytest.fixture
def store(session_factory):
    return SnapshotStore(session_factory)


@pytest.fixture
def pages():
    """Profile id -> HTML (or int status code) served by the mock nCore."""
    return {}


@pytest.fixture
async def ncore_client(pages):
    def handler(request: httpx.Request) -> httpx.Response:
        page = pages.get(request.url.params.get("id"))
        if page is None:
            return httpx.Response(404)
        if isinstance(page, int):
            return httpx.Response(page)
        return httpx.Response(200, text=page)

    client = NcoreClient("nick", "secret", transport=httpx.MockTransport(handler))
    yield client
    await client.aclose()
