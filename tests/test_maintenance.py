"""Maintenance commands: thumbnail rebuild and tag color spreading."""

import random
from collections import Counter

from PIL import Image as PILImage
from sqlmodel import Session, select

from conftest import make_png
from slidecast.config import settings
from slidecast.database import engine
from slidecast.maintenance import regenerate_thumbnails, spread_tag_colors, thumbnails_main
from slidecast.models.image import Tag
from slidecast.utils.image import generate_thumbnail


def test_thumbnail_width_defaults_to_settings(tmp_path):
    out = generate_thumbnail(make_png(800, 400), tmp_path / "wide.png")
    with PILImage.open(out) as thumb:
        assert thumb.size == (settings.thumbnail_size, settings.thumbnail_size // 2)


def test_regenerate_thumbnails_keeps_names_and_skips_bad_files(tmp_path):
    images, thumbs = tmp_path / "images", tmp_path / "thumbs"
    images.mkdir()
    (images / "a.png").write_bytes(make_png(400, 200))
    (images / "b.JPG").write_bytes(make_png(100, 100))
    (images / "broken.png").write_bytes(b"not really a png")
    (images / "notes.txt").write_text("ignored")

    written, failed = regenerate_thumbnails(images, thumbs, width=50)

    assert (written, failed) == (2, 1)
    assert sorted(p.name for p in thumbs.iterdir()) == ["a.png", "b.JPG"]
    with PILImage.open(thumbs / "a.png") as thumb:
        assert thumb.size == (50, 25)


def test_thumbnails_command_reports_failures(tmp_path):
    images = tmp_path / "images"
    images.mkdir()
    (images / "ok.png").write_bytes(make_png(60, 60))
    args = ["--image-dir", str(images), "--thumbnail-dir", str(tmp_path / "thumbs"), "--width", "20"]
    assert thumbnails_main(args) == 0

    (images / "bad.gif").write_bytes(b"GIF89a-truncated")
    assert thumbnails_main(args) == 1


def test_spread_tag_colors_uses_palette_evenly(client):
    palette = ["#111111", "#222222", "#333333"]
    for i in range(7):
        client.post("/api/tags", json={"name": f"tag{i}", "color": "#000000"})

    with Session(engine) as session:
        assigned = spread_tag_colors(session, palette, random.Random(5))
        hidden = session.exec(select(Tag).where(Tag.name == settings.hidden_tag_name)).one()

    assert len(assigned) == 7
    assert Counter(assigned.values()) == {"#111111": 3, "#222222": 2, "#333333": 2}
    assert hidden.color == settings.hidden_tag_color

    stored = {t["id"]: t["color"] for t in client.get("/api/tags").json() if t["name"] != "Hidden"}
    assert stored == assigned
