"""
Session management — one planning session per open zoo.

A session owns everything that used to be page-global state: the
placement store, the interaction controller, the validation engine, the
selected occupant and the zoo name.  Sessions live in memory only; the
sole persisted form of a layout is the encoded share string
(``share_params()`` / ``load_encoded()``).

Sessions are identified by a short timestamp-based ID and kept in a
process-wide registry so the web server can find them between requests.
The registry holds at most ``MAX_SESSIONS``; creating one more evicts the
session that was modified longest ago.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from zooplanner.catalog.models import CatalogResult
from zooplanner.config import GRID_RULES, MAX_CATALOG_ENTRIES, GridRules
from zooplanner.layout.codec import DecodeError, encode_state, parse_state
from zooplanner.layout.controller import InteractionController, RenderUpdate
from zooplanner.layout.models import BUILDING, ITEM_KINDS
from zooplanner.layout.store import PlacementStore
from zooplanner.layout.validation import LayoutSummary, ValidationEngine


log = logging.getLogger(__name__)


@dataclass
class PendingConfirmation:
    """A delete request waiting for the user's answer."""
    message: str
    on_accept: Callable[[], None]


@dataclass
class PlannerSession:
    id: str
    catalog: CatalogResult
    rules: GridRules = GRID_RULES
    name: str = ""                       # free text, shared as ?n=
    created: str = ""                    # ISO 8601
    last_modified: str = ""              # ISO 8601
    pending: PendingConfirmation | None = None
    updates: list[RenderUpdate] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        now = datetime.now(timezone.utc).isoformat()
        self.created = self.created or now
        self.last_modified = self.last_modified or now
        self.store = PlacementStore(self.rules)
        self.validation = ValidationEngine(self.store, self.catalog)
        self.controller = InteractionController(
            self.store, self.validation,
            on_render=self.updates.append,
            confirm=self._ask,
        )
        self.controller.refresh_selection()

    # ── Occupant selection ─────────────────────────────────────────

    @property
    def selected_occupant(self) -> str | None:
        return self.controller.selected_occupant

    def select_occupant(self, occupant_id: str) -> bool:
        """Pick the occupant the next drawn enclosure is for.

        Occupants that already have an enclosure cannot be selected, nor
        can occupants listed past what a share link can index.
        """
        index = next((i for i, a in enumerate(self.catalog.animals)
                      if a.occupant_id == occupant_id), None)
        if index is None:
            raise KeyError(f"Unknown occupant '{occupant_id}'")
        if index >= MAX_CATALOG_ENTRIES or occupant_id in self.store.used_occupants():
            return False
        self.controller.selected_occupant = occupant_id
        return True

    # ── Confirmation ───────────────────────────────────────────────

    def _ask(self, message: str, on_accept: Callable[[], None]) -> None:
        self.pending = PendingConfirmation(message, on_accept)

    def confirm_pending(self) -> bool:
        """Accept the outstanding delete request, if any."""
        pending, self.pending = self.pending, None
        if pending is None:
            return False
        pending.on_accept()
        self.touch()
        return True

    def cancel_pending(self) -> bool:
        had = self.pending is not None
        self.pending = None
        return had

    # ── Sidebar deletes (no confirmation, like the palette buttons) ─

    def delete_type(self, kind: str, type_id: str) -> int:
        """Remove every placed item of a catalog type."""
        if kind not in ITEM_KINDS:
            raise ValueError(f"Unknown item kind '{kind}'")
        removed = self.controller.delete_type(kind, type_id)
        if removed:
            self.touch()
        return len(removed)

    def delete_enclosure_for(self, occupant_id: str) -> bool:
        if self.controller.delete_enclosure_for(occupant_id) is None:
            return False
        self.touch()
        return True

    def delete_entity(self, instance_id: int) -> bool:
        if self.controller.delete_entity(instance_id) is None:
            return False
        self.touch()
        return True

    def start_over(self) -> None:
        """Clear every entity, the name and the selection."""
        self.store.clear()
        self.controller.gesture = None
        self.controller.selected_occupant = None
        self.controller.refresh_selection()
        self.pending = None
        self.name = ""
        self.updates.append(RenderUpdate("clear_all", ""))
        self.touch()
        log.info("Session %s started over", self.id)

    # ── Sharing ────────────────────────────────────────────────────

    def encode(self) -> str:
        return encode_state(self.store, self.catalog)

    def share_params(self) -> dict[str, str]:
        """Query parameters for a share link; empty values are left out."""
        params: dict[str, str] = {}
        if self.name:
            params["n"] = self.name
        encoded = self.encode()
        if encoded:
            params["z"] = encoded
        return params

    def load_encoded(self, encoded: str | None, name: str | None = None) -> bool:
        """Replace the layout with one decoded from a share string.

        Returns False (and leaves the layout untouched) when there is
        nothing to load or the string is malformed.
        """
        if name:
            self.name = name
        if not encoded:
            return False
        try:
            store = parse_state(encoded, self.catalog, self.rules)
        except DecodeError as exc:
            log.warning("Session %s: ignoring saved state: %s", self.id, exc)
            return False

        self.store = store
        self.validation.store = store
        self.controller.store = store
        self.controller.gesture = None
        self.controller.refresh_selection()
        self.pending = None
        self.updates.append(RenderUpdate("clear_all", ""))
        self.controller.redraw()
        self.touch()
        log.info("Session %s loaded %d building(s), %d decoration(s), %d enclosure(s)",
                 self.id, len(store.buildings), len(store.decorations),
                 len(store.enclosures))
        return True

    # ── Reporting ──────────────────────────────────────────────────

    def summary(self) -> LayoutSummary:
        return self.validation.summary()

    def building_available(self, type_id: str) -> bool:
        """Whether the palette should still offer this building."""
        return not (self.store.is_unique_kind(BUILDING, type_id)
                    and self.store.count_of_type(BUILDING, type_id))

    def drain_updates(self) -> list[RenderUpdate]:
        drained = list(self.updates)
        self.updates.clear()
        return drained

    def touch(self) -> None:
        self.last_modified = datetime.now(timezone.utc).isoformat()


# ── Registry ───────────────────────────────────────────────────────

MAX_SESSIONS = 100

_sessions: dict[str, PlannerSession] = {}
_registry_lock = threading.Lock()


def _generate_session_id() -> str:
    """Generate a short, unique, human-readable session ID."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def create_session(catalog: CatalogResult, rules: GridRules = GRID_RULES) -> PlannerSession:
    """Create and register a new empty session."""
    with _registry_lock:
        base = _generate_session_id()
        sid, n = base, 1
        # Two sessions in the same second get a numeric suffix
        while sid in _sessions:
            n += 1
            sid = f"{base}_{n}"
        while _sessions and len(_sessions) >= MAX_SESSIONS:
            stale = min(_sessions.values(), key=lambda s: s.last_modified)
            del _sessions[stale.id]
            log.info("Evicted idle session %s (last modified %s)",
                     stale.id, stale.last_modified)
        session = PlannerSession(id=sid, catalog=catalog, rules=rules)
        _sessions[sid] = session
    log.info("Created session %s", sid)
    return session


def get_session(session_id: str) -> PlannerSession | None:
    return _sessions.get(session_id)


def close_session(session_id: str) -> bool:
    with _registry_lock:
        return _sessions.pop(session_id, None) is not None


def list_sessions() -> list[dict]:
    """Lightweight metadata for every open session, newest first."""
    return [
        {
            "id": s.id,
            "name": s.name,
            "created": s.created,
            "last_modified": s.last_modified,
        }
        for s in sorted(_sessions.values(), key=lambda s: s.id, reverse=True)
    ]
