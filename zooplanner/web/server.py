"""
FastAPI web server — drives planning sessions from browser pointer events.

The browser stays responsible for drawing; every endpoint returns the
render updates the request produced so the page can redraw just those
entities.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal
from urllib.parse import urlencode

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from zooplanner.catalog import CatalogResult, catalog_to_dict, load_catalog
from zooplanner.layout.codec import EncodeError
from zooplanner.layout.controller import Pointer
from zooplanner.layout.models import ITEM_KINDS
from zooplanner.layout.serialization import (
    entity_to_dict, rect_to_dict, store_to_dict, summary_to_dict, update_to_dict,
)
from zooplanner.session import (
    PlannerSession, close_session, create_session, get_session, list_sessions,
)


log = logging.getLogger(__name__)


# ── .env loader ────────────────────────────────────────────────────

def _load_env():
    root = Path(__file__).resolve().parents[2]
    for name in (".env", ".env.local"):
        p = root / name
        if p.exists():
            for line in p.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and "=" in line and not line.startswith("#"):
                    k, v = line.split("=", 1)
                    k = k.strip()
                    v = v.strip().strip('"').strip("'")
                    if k and k not in os.environ:
                        os.environ[k] = v

_load_env()

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Zoo Planner")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Catalog (loaded once, replaceable for tests) ───────────────────

_catalog: CatalogResult | None = None


def get_catalog() -> CatalogResult:
    global _catalog
    if _catalog is None:
        env_dir = os.environ.get("ZOO_CATALOG_DIR")
        _catalog = load_catalog(Path(env_dir) if env_dir else None)
        for err in _catalog.errors:
            log.warning("Catalog: %s", err)
    return _catalog


def set_catalog(catalog: CatalogResult | None) -> None:
    global _catalog
    _catalog = catalog


# ── Models ─────────────────────────────────────────────────────────

class PointerRequest(BaseModel):
    kind: Literal["down", "move", "up"]
    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)


class DropRequest(BaseModel):
    kind: Literal["building", "decoration"]
    type_id: str
    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)


class SelectRequest(BaseModel):
    occupant_id: str


class LoadRequest(BaseModel):
    z: str | None = None
    n: str | None = None


class NameRequest(BaseModel):
    name: str


# ── Helpers ────────────────────────────────────────────────────────

def _session(session_id: str) -> PlannerSession:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(404, f"No session '{session_id}'")
    return session


def _state(session: PlannerSession, **extra) -> dict:
    """Common response body: updates since last call + session status.

    ``encoded`` is None when the layout cannot be written as a share
    string; the session itself keeps working.
    """
    try:
        encoded = session.encode()
    except EncodeError as exc:
        log.warning("Session %s cannot be encoded: %s", session.id, exc)
        encoded = None
    return {
        "updates": [update_to_dict(u) for u in session.drain_updates()],
        "pending_confirmation": session.pending.message if session.pending else None,
        "selected_occupant": session.selected_occupant,
        "encoded": encoded,
        **extra,
    }


# ── Routes ─────────────────────────────────────────────────────────

@app.get("/api/catalog")
def get_catalog_route():
    return catalog_to_dict(get_catalog())


@app.get("/api/sessions")
def list_sessions_route():
    return {"sessions": list_sessions()}


@app.post("/api/sessions")
def create_session_route():
    session = create_session(get_catalog())
    return {"id": session.id, **_state(session)}


@app.delete("/api/sessions/{session_id}")
def close_session_route(session_id: str):
    if not close_session(session_id):
        raise HTTPException(404, f"No session '{session_id}'")
    return {"status": "ok"}


@app.get("/api/sessions/{session_id}")
def get_session_route(session_id: str):
    session = _session(session_id)
    with session.lock:
        return {
            "id": session.id,
            "name": session.name,
            "layout": store_to_dict(session.store),
            **_state(session),
        }


@app.post("/api/sessions/{session_id}/pointer")
def pointer(session_id: str, req: PointerRequest):
    """Feed one pointer event (pixels relative to the grid origin)."""
    session = _session(session_id)
    p = Pointer(req.x, req.y)
    with session.lock:
        handler = getattr(session.controller, req.kind)
        handler(p)
        if req.kind == "up":
            session.touch()
        return _state(session, cursor=session.controller.cursor_at(p))


@app.post("/api/sessions/{session_id}/confirm")
def confirm(session_id: str):
    """Answer "yes" to the outstanding delete question."""
    session = _session(session_id)
    with session.lock:
        if not session.confirm_pending():
            raise HTTPException(400, "Nothing to confirm")
        return _state(session)


@app.post("/api/sessions/{session_id}/cancel")
def cancel(session_id: str):
    session = _session(session_id)
    with session.lock:
        session.cancel_pending()
        return _state(session)


@app.post("/api/sessions/{session_id}/drop/preview")
def drop_preview(session_id: str, req: DropRequest):
    session = _session(session_id)
    with session.lock:
        try:
            rect, ok = session.controller.preview_item(req.kind, req.type_id, Pointer(req.x, req.y))
        except KeyError as exc:
            raise HTTPException(404, str(exc.args[0]))
        return {"rect": rect_to_dict(rect), "can_place": ok}


@app.post("/api/sessions/{session_id}/drop")
def drop(session_id: str, req: DropRequest):
    """Place a building or decoration dragged in from the palette."""
    session = _session(session_id)
    with session.lock:
        try:
            item = session.controller.drop_item(req.kind, req.type_id, Pointer(req.x, req.y))
        except KeyError as exc:
            raise HTTPException(404, str(exc.args[0]))
        if item is not None:
            session.touch()
        return _state(
            session,
            placed=item is not None,
            item=entity_to_dict(item) if item is not None else None,
        )


@app.post("/api/sessions/{session_id}/select")
def select(session_id: str, req: SelectRequest):
    session = _session(session_id)
    with session.lock:
        try:
            selected = session.select_occupant(req.occupant_id)
        except KeyError as exc:
            raise HTTPException(404, str(exc.args[0]))
        if not selected:
            raise HTTPException(409, f"'{req.occupant_id}' cannot be selected")
        return _state(session)


@app.delete("/api/sessions/{session_id}/items/{instance_id}")
def delete_entity(session_id: str, instance_id: int):
    session = _session(session_id)
    with session.lock:
        if not session.delete_entity(instance_id):
            raise HTTPException(404, f"No entity #{instance_id}")
        return _state(session)


@app.delete("/api/sessions/{session_id}/enclosures/by-occupant/{occupant_id}")
def delete_enclosure_for(session_id: str, occupant_id: str):
    session = _session(session_id)
    with session.lock:
        if not session.delete_enclosure_for(occupant_id):
            raise HTTPException(404, f"No enclosure for '{occupant_id}'")
        return _state(session)


@app.delete("/api/sessions/{session_id}/types/{kind}/{type_id}")
def delete_type(session_id: str, kind: str, type_id: str):
    """Sidebar "delete all" button for one building/decoration type."""
    if kind not in ITEM_KINDS:
        raise HTTPException(400, f"Unknown item kind '{kind}'")
    session = _session(session_id)
    with session.lock:
        removed = session.delete_type(kind, type_id)
        return _state(session, removed=removed)


@app.get("/api/sessions/{session_id}/summary")
def summary(session_id: str):
    session = _session(session_id)
    with session.lock:
        return summary_to_dict(session.summary())


@app.put("/api/sessions/{session_id}/name")
def rename(session_id: str, req: NameRequest):
    session = _session(session_id)
    with session.lock:
        session.name = req.name.strip()
        session.touch()
        return {"name": session.name}


@app.get("/api/sessions/{session_id}/share")
def share(session_id: str):
    """Query parameters (and query string) for a share link."""
    session = _session(session_id)
    with session.lock:
        try:
            params = session.share_params()
        except EncodeError as exc:
            raise HTTPException(409, str(exc))
        return {"params": params, "query": urlencode(params)}


@app.post("/api/sessions/{session_id}/load")
def load(session_id: str, req: LoadRequest):
    """Restore a layout from share-link parameters."""
    session = _session(session_id)
    with session.lock:
        loaded = session.load_encoded(req.z, req.n)
        return _state(session, loaded=loaded, name=session.name)


@app.post("/api/sessions/{session_id}/reset")
def reset(session_id: str):
    """Start over: clear every entity and the zoo name."""
    session = _session(session_id)
    with session.lock:
        session.start_over()
        return _state(session)


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("zooplanner.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
