"""
Diagnostics Store
=================
Per-file diagnostic sets, keyed by normalized path. This is the only
mutable state the compile pipeline writes.

Semantics:
    - replace-all per path: every write fully replaces the previous set,
      nothing is merged or appended.
    - clear is a replace with an empty set, and still notifies subscribers.
    - Stale-result guard: `begin(path)` hands out a generation number for a
      compile that is about to start. `publish()` with an older generation
      than the newest `begin()` for that path is dropped, so a slow compile
      finishing late cannot overwrite a fresher result.

Owned by one application instance and injected into the orchestrators;
there is no module-level store.
"""
import logging
from typing import Callable, Dict, List

from crunner.models.diagnostic import Diagnostic
from crunner.models.source_unit import normalize_path

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, List[Diagnostic]], None]


class DiagnosticsStore:

    def __init__(self) -> None:
        self._entries: Dict[str, List[Diagnostic]] = {}
        self._generations: Dict[str, int] = {}
        self._subscribers: List[Subscriber] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, path: str) -> List[Diagnostic]:
        return list(self._entries.get(normalize_path(path), []))

    def paths(self) -> List[str]:
        return sorted(p for p, diags in self._entries.items() if diags)

    def __contains__(self, path: str) -> bool:
        return bool(self._entries.get(normalize_path(path)))

    # ------------------------------------------------------------------
    # Generations
    # ------------------------------------------------------------------
    def begin(self, path: str) -> int:
        """Register a compile for `path` and return its generation."""
        key = normalize_path(path)
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        return generation

    def is_current(self, path: str, generation: int) -> bool:
        return self._generations.get(normalize_path(path), 0) == generation

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def set(self, path: str, diagnostics: List[Diagnostic]) -> None:
        """Replace the whole set for `path` and notify subscribers."""
        key = normalize_path(path)
        self._entries[key] = list(diagnostics)
        self._notify(key, self._entries[key])

    def clear(self, path: str) -> None:
        self.set(path, [])

    def publish(self, path: str, generation: int, diagnostics: List[Diagnostic]) -> bool:
        """Write `diagnostics` only if `generation` is still the newest. Returns True if written."""
        if not self.is_current(path, generation):
            logger.info(
                "Dropping stale diagnostics for %s (generation %d superseded)",
                path, generation,
            )
            return False
        self.set(path, diagnostics)
        return True

    # ------------------------------------------------------------------
    # Rendering sink
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a renderer; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self, path: str, diagnostics: List[Diagnostic]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(path, list(diagnostics))
            except Exception:
                logger.warning("Diagnostics subscriber failed for %s", path, exc_info=True)
