"""Asset loading collaborators: background loads, one-shot visibility and readiness.

A load has two terminal outcomes, ``"loaded"`` and ``"failed"``; callers that
only care about display readiness treat them the same.
"""

from __future__ import annotations

import io
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Set

import requests
from PIL import Image

from .models import ActiveSlide

LOADED = "loaded"
FAILED = "failed"

USER_AGENT = "slide-presenter/0.1 (+asset preload)"


def _requests_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def is_remote(ref: str) -> bool:
    return ref.startswith(("http://", "https://"))


class AssetLoader:
    """Load image assets in the background.

    Remote references are fetched with ``requests``; local ones are read from
    ``assets_dir``. Both are decoded with Pillow so a truncated or non-image
    file counts as failed. No timeout is applied.
    """

    def __init__(
        self,
        assets_dir: Optional[Path] = None,
        *,
        session: Optional[requests.Session] = None,
        max_workers: int = 4,
    ):
        self.assets_dir = Path(assets_dir) if assets_dir else None
        self.session = session or _requests_session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="asset-load")

    def local_path(self, ref: str) -> Path:
        path = Path(ref)
        if path.is_absolute() or self.assets_dir is None:
            return path
        return self.assets_dir / path

    def _open(self, ref: str) -> Any:
        if is_remote(ref):
            resp = self.session.get(ref)
            resp.raise_for_status()
            return Image.open(io.BytesIO(resp.content))
        return Image.open(self.local_path(ref))

    def fetch(self, ref: str) -> str:
        """Load one asset synchronously and return its outcome."""
        try:
            with self._open(ref) as im:
                im.verify()
        except (requests.RequestException, OSError, SyntaxError, ValueError, Image.DecompressionBombError):
            return FAILED
        return LOADED

    def load(self, ref: str) -> Future:
        return self._executor.submit(self.fetch, ref)

    def when_ready(self, ref: str, callback: Callable[[str], None]) -> Future:
        """Start a load and call ``callback(ref)`` once it ends, whatever the outcome."""
        future = self.load(ref)
        future.add_done_callback(lambda _f: callback(ref))
        return future

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.session.close()

    def __enter__(self) -> "AssetLoader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class VisibilityObserver:
    """One-shot visibility subscriptions.

    A region may have several subscribers (a stacked pair shares one slide).
    The first positive signal for a region invokes every callback registered
    so far and removes them; later signals deliver nothing.
    """

    def __init__(self) -> None:
        self._callbacks: Dict[Hashable, Dict[object, Callable[[], None]]] = {}

    def subscribe(self, region: Hashable, callback: Callable[[], None]) -> Callable[[], None]:
        token = object()
        self._callbacks.setdefault(region, {})[token] = callback

        def unsubscribe() -> None:
            waiting = self._callbacks.get(region)
            if waiting is None:
                return
            waiting.pop(token, None)
            if not waiting:
                del self._callbacks[region]

        return unsubscribe

    def signal(self, region: Hashable, visible: bool) -> bool:
        if not visible:
            return False
        waiting = self._callbacks.pop(region, None)
        if not waiting:
            return False
        for callback in waiting.values():
            callback()
        return True

    def is_subscribed(self, region: Hashable) -> bool:
        return region in self._callbacks


class ReadinessBoard:
    """Which assets of the current sequence are ready to display.

    Completions that belong to an older generation are dropped, so loads
    started before a rebuild cannot affect the new sequence.
    """

    def __init__(self, generation: int = 0):
        self._lock = threading.Lock()
        self._generation = generation
        self._ready: Set[str] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                self._generation = generation
                self._ready = set()

    def mark_ready(self, generation: int, ref: str) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self._ready.add(ref)
            return True

    def track(self, generation: int, ref: str, future: Future) -> None:
        future.add_done_callback(lambda _f: self.mark_ready(generation, ref))

    def is_ready(self, ref: str) -> bool:
        with self._lock:
            return ref in self._ready


def load_when_visible(
    region: Hashable,
    ref: str,
    *,
    observer: VisibilityObserver,
    loader: AssetLoader,
    board: ReadinessBoard,
    generation: int,
) -> Callable[[], None]:
    """Defer loading ``ref`` until ``region`` first becomes visible."""

    def start() -> None:
        board.track(generation, ref, loader.load(ref))

    return observer.subscribe(region, start)


def slide_refs(slide: ActiveSlide) -> List[str]:
    """Distinct asset references a slide displays."""
    refs = [slide.image] if slide.image else []
    refs.extend(slide.images or [])
    return list(dict.fromkeys(refs))


class LazySequenceLoader:
    """Load a slide's images the first time that slide is shown.

    Subscriptions are made per generation. Watching a new generation drops
    the pending ones and resets the board, so loads still running for the
    previous sequence finish without effect.
    """

    def __init__(self, loader: AssetLoader, observer: Optional[VisibilityObserver] = None):
        self.loader = loader
        self.observer = observer or VisibilityObserver()
        self.board = ReadinessBoard(generation=-1)
        self._pending: List[Callable[[], None]] = []

    def watch(self, generation: int, slides: Sequence[ActiveSlide]) -> None:
        if generation == self.board.generation:
            return
        for unsubscribe in self._pending:
            unsubscribe()
        self.board.begin(generation)
        self._pending = [
            load_when_visible(
                (generation, slide.id),
                ref,
                observer=self.observer,
                loader=self.loader,
                board=self.board,
                generation=generation,
            )
            for slide in slides
            for ref in slide_refs(slide)
        ]

    def show(self, generation: int, slide: Optional[ActiveSlide]) -> None:
        if slide is not None:
            self.observer.signal((generation, slide.id), True)

    def is_ready(self, ref: str) -> bool:
        return self.board.is_ready(ref)
