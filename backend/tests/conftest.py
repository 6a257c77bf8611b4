"""
Pytest configuration for backend tests.

This file configures pytest for the backend test suite, including the
in-process fake OpenList server used by client, service and route tests.
"""

import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

# Add backend directory to Python path for imports
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

# Must be set before metafix.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from metafix.models.base import Base
from metafix.services.metainfo_cache import MetaInfoCache


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


class FakeOpenList:
    """
    Minimal OpenList server speaking the subset of the API the client uses.

    Files live in self.files (path -> text). Direct download links are
    served under /d/<path> without authentication.
    """

    BASE_URL = "http://openlist.test"

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.valid_tokens = {"good-token"}
        self.users = {"admin": "secret"}
        self.issued_token = "fresh-token"
        self.accept_issued_token = True
        self.calls: List[Tuple[str, str, Optional[str], dict, dict]] = []
        # Failure knobs
        self.put_status: Optional[int] = None
        self.refresh_status: Optional[int] = None
        self.refresh_raises = False
        self.get_raises = False
        self.download_status: Optional[int] = None

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    def count(self, path: str) -> int:
        return sum(1 for _, p, _, _, _ in self.calls if p == path)

    def bodies(self, path: str) -> List[dict]:
        return [body for _, p, _, body, _ in self.calls if p == path]

    def headers(self, path: str) -> List[dict]:
        return [headers for _, p, _, _, headers in self.calls if p == path]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        token = request.headers.get("Authorization")
        body: dict = {}
        if request.headers.get("Content-Type", "").startswith("application/json") and request.content:
            body = json.loads(request.content)
        self.calls.append((request.method, path, token, body, dict(request.headers)))

        if path.startswith("/d/"):
            if self.download_status:
                return httpx.Response(self.download_status, text="gone")
            file_path = path[2:]
            if file_path in self.files:
                return httpx.Response(200, text=self.files[file_path])
            return httpx.Response(404, text="not found")

        if path == "/api/auth/login":
            if self.users.get(body.get("username")) == body.get("password"):
                if self.accept_issued_token:
                    self.valid_tokens.add(self.issued_token)
                return httpx.Response(200, json={
                    "code": 200, "message": "success", "data": {"token": self.issued_token}
                })
            return httpx.Response(200, json={
                "code": 400, "message": "password is incorrect", "data": None
            })

        if token not in self.valid_tokens:
            return httpx.Response(401, json={"code": 401, "message": "token is invalidated"})

        if path == "/api/fs/get":
            if self.get_raises:
                raise httpx.ConnectError("connection refused", request=request)
            file_path = body["path"]
            if file_path in self.files:
                return httpx.Response(200, json={
                    "code": 200,
                    "message": "success",
                    "data": {
                        "name": file_path.rsplit("/", 1)[-1],
                        "size": len(self.files[file_path].encode("utf-8")),
                        "is_dir": False,
                        "raw_url": f"{self.BASE_URL}/d{file_path}",
                        "type": 0,
                    },
                })
            return httpx.Response(200, json={"code": 500, "message": "object not found", "data": None})

        if path == "/api/fs/put":
            if self.put_status:
                return httpx.Response(self.put_status, text="storage is read-only")
            file_path = unquote(request.headers["File-Path"])
            self.files[file_path] = request.content.decode("utf-8")
            return httpx.Response(200, json={"code": 200, "message": "success", "data": None})

        if path == "/api/fs/list":
            if body.get("refresh"):
                if self.refresh_raises:
                    raise httpx.ConnectError("refresh unreachable", request=request)
                if self.refresh_status:
                    return httpx.Response(self.refresh_status, text="refresh failed")
            directory = body["path"].rstrip("/") or ""
            content = [
                {"name": p.rsplit("/", 1)[-1], "size": len(text), "is_dir": False, "modified": "", "type": 0}
                for p, text in self.files.items()
                if p.rsplit("/", 1)[0] == directory
            ]
            return httpx.Response(200, json={
                "code": 200,
                "message": "success",
                "data": {"content": content, "total": len(content), "readme": "", "write": True},
            })

        if path == "/api/fs/remove":
            directory = body["dir"].rstrip("/")
            for name in body["names"]:
                self.files.pop(f"{directory}/{name}", None)
            return httpx.Response(200, json={"code": 200, "message": "success", "data": None})

        return httpx.Response(404, text="no route")


@pytest.fixture
def openlist():
    """Fake OpenList server."""
    return FakeOpenList()


@pytest.fixture
def metainfo_cache():
    """Fresh metainfo cache (not the process-wide instance)."""
    return MetaInfoCache()


@pytest.fixture
def sample_metainfo():
    """metainfo.json document with three folders and an extra top-level key."""
    return {
        "version": 2,
        "folders": {
            "The Matrix (1999)": {
                "tmdb_id": 604,
                "title": "The Matrix Reloaded",
                "release_date": "2003-05-15",
                "overview": "",
                "vote_average": 7.0,
                "media_type": "movie",
                "last_updated": 1700000000000,
                "failed": False,
            },
            "Dark S01": {
                "tmdb_id": 70523,
                "title": "Dark",
                "poster_path": "/apbrbWs8M9lyOpJYU5WXrpFbk1Z.jpg",
                "release_date": "2017-12-01",
                "overview": "A missing child sets four families on a frantic hunt.",
                "vote_average": 8.4,
                "media_type": "tv",
                "last_updated": 1700000000000,
                "failed": False,
            },
            "Unknown.Rip.2020": {
                "tmdb_id": None,
                "last_updated": 1700000000000,
                "failed": True,
            },
        },
    }


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
