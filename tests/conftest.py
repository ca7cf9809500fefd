"""Shared fixtures. Environment is pointed at temp dirs before the app is imported."""

import os
import tempfile
from io import BytesIO

_root = tempfile.mkdtemp()
os.environ["SLIDECAST_DATA_DIR"] = os.path.join(_root, "data")
os.environ["SLIDECAST_IMAGE_DIR"] = os.path.join(_root, "images")
os.environ["SLIDECAST_THUMBNAIL_DIR"] = os.path.join(_root, "thumbnails")
os.environ["SLIDECAST_DB_PATH"] = os.path.join(_root, "data", "test.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image as PILImage  # noqa: E402
from sqlalchemy import delete  # noqa: E402
from sqlmodel import Session, col  # noqa: E402

from slidecast.config import settings  # noqa: E402
from slidecast.database import engine  # noqa: E402
from slidecast.models.image import ImageTag, Tag  # noqa: E402
from slidecast.models.image import Image as ImageRecord  # noqa: E402
from slidecast.models.playlist import Playlist, PlaylistImage  # noqa: E402


def make_png(width: int = 320, height: int = 240, color: str = "red") -> bytes:
    buf = BytesIO()
    PILImage.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(scope="session")
def client():
    from slidecast.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def clean_db(client):
    yield
    with Session(engine) as session:
        session.exec(delete(PlaylistImage))
        session.exec(delete(Playlist))
        session.exec(delete(ImageTag))
        session.exec(delete(ImageRecord))
        session.exec(delete(Tag).where(col(Tag.name) != settings.hidden_tag_name))
        session.commit()
    settings.preferences_path.unlink(missing_ok=True)


@pytest.fixture
def upload(client):
    """Upload a PNG and return its image id. Uploaded images start hidden."""

    def _upload(name: str, color: str = "red") -> int:
        r = client.post("/upload", files={"file": (name, make_png(color=color), "image/png")})
        assert r.status_code == 201, f"upload failed: {r.status_code} {r.text}"
        return r.json()["imageId"]

    return _upload


@pytest.fixture
def unhide(client):
    def _unhide(*ids: int) -> None:
        r = client.request("DELETE", "/api/entries/tags", json={"ids": list(ids), "tag": "Hidden"})
        assert r.status_code == 200, r.text

    return _unhide
