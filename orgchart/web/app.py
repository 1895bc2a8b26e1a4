"""
FastAPI web application for browsing and editing the organization hierarchy.
Provides the tree page, the activity log, and a JSON API.
"""
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
import uvicorn

from orgchart.services.hierarchy import HierarchyError, count_nodes, forest_to_json, record_to_dict
from orgchart.services.persistence import DatabaseManager
from orgchart.services.source import get_directory, parse_users
from orgchart.services.store import HierarchyStore
from orgchart.services.tree_renderer import display_name, render_forest_html

# Configure logging for systemd
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)

# Process-wide state
store = HierarchyStore()
db_manager = DatabaseManager()


def load_hierarchy() -> bool:
    """Fetch the relation from the configured data source into the store."""
    try:
        store.load(get_directory())
        diagnostics = store.diagnostics
        db_manager.log_event("load", f"Loaded {len(store.records)} users", status="success")
        if diagnostics.orphans:
            db_manager.log_event(
                "orphans",
                f"Users with unknown managers shown as roots: {', '.join(map(str, diagnostics.orphans))}",
                status="warning"
            )
        return True
    except HierarchyError as e:
        logging.error(f"Directory data rejected: {e}")
        db_manager.log_event("load", str(e), status="error")
        return False
    except RuntimeError as e:
        logging.error(f"Failed to load directory: {e}")
        db_manager.log_event("load", str(e), status="error")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not load_hierarchy():
        logging.warning("Starting with an empty hierarchy")
    yield


app = FastAPI(title="orgchart", version="1.0.0", lifespan=lifespan)

# Setup templates and static files
BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

static_dir = BASE_DIR / "static"
static_dir.mkdir(exist_ok=True)
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")


# ===== HELPER FUNCTIONS =====

def resolve_record_id(record_id: str) -> Optional[Any]:
    """Map an id taken from a URL back to the id value stored in the relation.

    URL ids are strings, so 1 and "1" both match "1"; when the relation holds
    both, the request is refused rather than guessing.
    """
    matches = [r.id for r in store.records if str(r.id) == record_id]
    if len(matches) > 1:
        logging.warning(f"User id {record_id} is ambiguous: {matches!r}")
        raise HTTPException(status_code=409, detail=f"User id {record_id} matches more than one user")
    return matches[0] if matches else None


def remove_user(record_id: str) -> bool:
    """Remove a user if present; returns whether anything was removed."""
    stored_id = resolve_record_id(record_id)
    if stored_id is None:
        logging.info(f"Remove requested for unknown user {record_id}, nothing to do")
        return False
    record = store.get(stored_id)
    store.remove(stored_id)
    db_manager.log_event(
        "remove",
        f"Removed {display_name(record.attributes) or stored_id}",
        record_id=stored_id,
        status="success"
    )
    return True


def tree_response(forest, removed: Optional[bool] = None) -> Response:
    """JSON response carrying the nested tree, optionally wrapped with a removal flag."""
    body = forest_to_json(forest)
    if removed is not None:
        body = f'{{"removed": {json.dumps(removed)}, "hierarchy": {body}}}'
    return Response(content=body, media_type="application/json")


# ===== ROUTES =====

@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Main page - shows the hierarchy tree."""
    try:
        forest = store.forest
        return templates.TemplateResponse(request, "hierarchy.html", {
            "tree_html": render_forest_html(forest),
            "user_count": count_nodes(forest),
            "orphans": store.diagnostics.orphans
        })
    except Exception as e:
        logging.error(f"Error rendering hierarchy: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.post("/users/{record_id:path}/remove")
async def remove_user_form(record_id: str):
    """Remove a user from the tree page."""
    try:
        remove_user(record_id)
        return RedirectResponse(url="/", status_code=303)
    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"Error removing user {record_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/reload")
async def reload_hierarchy():
    """Fetch the directory again, replacing the current relation."""
    if not load_hierarchy():
        raise HTTPException(status_code=502, detail="Failed to load directory")
    return RedirectResponse(url="/", status_code=303)


# ===== LOGS ROUTES =====

@app.get("/logs", response_class=HTMLResponse)
async def view_logs(request: Request, limit: int = 100):
    """View activity logs (loads, removals, warnings)."""
    try:
        events = db_manager.get_events(limit=limit)
        return templates.TemplateResponse(request, "logs.html", {
            "events": events
        })
    except Exception as e:
        logging.error(f"Error viewing logs: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


# ===== API ROUTES =====

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/users")
async def api_list_users():
    """API endpoint to get the flat relation."""
    return [record_to_dict(record) for record in store.records]


@app.post("/api/users")
async def api_replace_users(payload: Any = Body(...)):
    """API endpoint to replace the relation with a posted directory payload."""
    try:
        records = parse_users(payload)
        forest = store.set_records(records)
    except (HierarchyError, RuntimeError) as e:
        logging.warning(f"Rejected posted directory: {e}")
        db_manager.log_event("replace", str(e), status="error")
        return JSONResponse(status_code=422, content={"detail": str(e)})

    db_manager.log_event("replace", f"Replaced relation with {len(records)} users", status="success")
    return tree_response(forest)


@app.delete("/api/users/{record_id:path}")
async def api_remove_user(record_id: str):
    """API endpoint to remove a user; unknown ids are a no-op."""
    try:
        removed = remove_user(record_id)
        return tree_response(store.forest, removed=removed)
    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"API error removing user {record_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/hierarchy")
async def api_get_hierarchy():
    """API endpoint to get the tree."""
    return tree_response(store.forest)


@app.get("/api/diagnostics")
async def api_diagnostics():
    """API endpoint listing users shown as roots because their manager is unknown."""
    return {"orphans": store.diagnostics.orphans}


@app.get("/api/events")
async def api_events(limit: int = 100, event_type: Optional[str] = None):
    """API endpoint to get the activity log."""
    try:
        return db_manager.get_events(limit=limit, event_type=event_type)
    except Exception as e:
        logging.error(f"API error getting events: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    uvicorn.run(
        "orgchart.web.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
