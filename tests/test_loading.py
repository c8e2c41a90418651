from __future__ import annotations

import io
import struct
import sys
import zlib
from concurrent.futures import Future
from pathlib import Path

import pytest
import requests
from PIL import Image

SCRIPT_DIR = Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from slidedeck.loading import (  # noqa: E402
    FAILED,
    LOADED,
    AssetLoader,
    LazySequenceLoader,
    ReadinessBoard,
    VisibilityObserver,
    load_when_visible,
    slide_refs,
)
from slidedeck.models import ActiveSlide  # noqa: E402


def _png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 3), (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


def _oversized_png_header(width: int = 20000, height: int = 20000) -> bytes:
    """A PNG that declares huge dimensions but carries no pixel data."""

    def chunk(kind: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


def _slide(slide_id: int, image: str, images=None) -> ActiveSlide:
    return ActiveSlide(
        id=slide_id,
        source_id=slide_id,
        module="M：x",
        title=f"Slide {slide_id}",
        layout_type="standard",
        content=(),
        data_support="",
        image=image,
        images=images,
    )


class _FakeResponse:
    def __init__(self, content: bytes, status: int = 200):
        self.content = content
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _FakeSession:
    def __init__(self, responses: dict):
        self.responses = responses
        self.closed = False

    def get(self, url: str):
        result = self.responses[url]
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def assets_dir(tmp_path: Path) -> Path:
    (tmp_path / "ok.png").write_bytes(_png_bytes())
    (tmp_path / "broken.png").write_text("not an image", encoding="utf-8")
    return tmp_path


def test_local_loads_report_both_outcomes(assets_dir: Path) -> None:
    with AssetLoader(assets_dir, session=_FakeSession({})) as loader:
        assert loader.load("ok.png").result() == LOADED
        assert loader.load("broken.png").result() == FAILED
        assert loader.load("missing.png").result() == FAILED


def test_remote_loads_use_session() -> None:
    session = _FakeSession(
        {
            "https://cdn.example.com/a.png": _FakeResponse(_png_bytes()),
            "https://cdn.example.com/404.png": _FakeResponse(b"", status=404),
            "https://cdn.example.com/down.png": requests.ConnectionError("down"),
        }
    )
    loader = AssetLoader(session=session)
    assert loader.fetch("https://cdn.example.com/a.png") == LOADED
    assert loader.fetch("https://cdn.example.com/404.png") == FAILED
    assert loader.fetch("https://cdn.example.com/down.png") == FAILED
    loader.close()
    assert session.closed


def test_when_ready_fires_for_success_and_failure(assets_dir: Path) -> None:
    ready: list[str] = []
    with AssetLoader(assets_dir, session=_FakeSession({})) as loader:
        loader.when_ready("ok.png", ready.append).result()
        loader.when_ready("missing.png", ready.append).result()
    assert sorted(ready) == ["missing.png", "ok.png"]


def test_visibility_callback_fires_once() -> None:
    observer = VisibilityObserver()
    calls: list[str] = []
    observer.subscribe("slide-3", lambda: calls.append("hit"))

    assert observer.signal("slide-3", False) is False
    assert observer.signal("slide-3", True) is True
    assert observer.signal("slide-3", True) is False
    assert calls == ["hit"]
    assert not observer.is_subscribed("slide-3")


def test_unsubscribe_before_visibility() -> None:
    observer = VisibilityObserver()
    calls: list[str] = []
    unsubscribe = observer.subscribe("r", lambda: calls.append("hit"))
    unsubscribe()
    unsubscribe()
    assert observer.signal("r", True) is False
    assert calls == []


def test_readiness_ignores_stale_generation() -> None:
    board = ReadinessBoard(generation=1)
    stale: Future = Future()
    board.track(1, "old.png", stale)

    board.begin(2)
    stale.set_result(LOADED)
    assert not board.is_ready("old.png")

    fresh: Future = Future()
    board.track(2, "new.png", fresh)
    assert not board.is_ready("new.png")
    fresh.set_result(FAILED)
    assert board.is_ready("new.png")


def test_load_when_visible_defers_until_signal(assets_dir: Path) -> None:
    observer = VisibilityObserver()
    board = ReadinessBoard(generation=5)
    with AssetLoader(assets_dir, session=_FakeSession({})) as loader:
        load_when_visible("hero", "ok.png", observer=observer, loader=loader, board=board, generation=5)
        assert not board.is_ready("ok.png")
        observer.signal("hero", True)
    # Leaving the context waits for the executor, so the load has finished.
    assert board.is_ready("ok.png")


def test_oversized_image_fails_instead_of_raising(tmp_path: Path) -> None:
    (tmp_path / "huge.png").write_bytes(_oversized_png_header())
    with AssetLoader(tmp_path, session=_FakeSession({})) as loader:
        future = loader.load("huge.png")
        assert future.exception() is None
        assert future.result() == FAILED


def test_every_subscriber_of_a_region_fires() -> None:
    observer = VisibilityObserver()
    calls: list[str] = []
    observer.subscribe("r", lambda: calls.append("first"))
    unsubscribe_second = observer.subscribe("r", lambda: calls.append("second"))
    observer.subscribe("r", lambda: calls.append("third"))
    unsubscribe_second()

    assert observer.signal("r", True) is True
    assert calls == ["first", "third"]
    assert observer.signal("r", True) is False


def test_unsubscribe_leaves_other_subscribers() -> None:
    observer = VisibilityObserver()
    first = observer.subscribe("r", lambda: None)
    observer.subscribe("r", lambda: None)
    first()
    assert observer.is_subscribed("r")


def test_slide_refs_deduplicates_pairs() -> None:
    assert slide_refs(_slide(1, "a.png", images=["a.png", "a.png"])) == ["a.png"]
    assert slide_refs(_slide(2, "top.png", images=["top.png", "bottom.png"])) == ["top.png", "bottom.png"]


def test_lazy_sequence_loader_only_loads_shown_slides(assets_dir: Path) -> None:
    with AssetLoader(assets_dir, session=_FakeSession({})) as loader:
        lazy = LazySequenceLoader(loader)
        first_sequence = [_slide(1, "ok.png"), _slide(2, "broken.png")]
        lazy.watch(1, first_sequence)
        lazy.show(1, first_sequence[0])

        # A rebuild before slide 2 was ever shown: its old subscription is gone.
        second_sequence = [_slide(1, "ok.png")]
        lazy.watch(2, second_sequence)
        lazy.show(1, first_sequence[1])
        lazy.show(2, second_sequence[0])

    assert lazy.board.generation == 2
    assert lazy.is_ready("ok.png")
    assert not lazy.is_ready("broken.png")
