from __future__ import annotations

import os
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.errors import RouteNotFound
from event_routes.catalog import DEFAULT_ROUTES_PATH, RouteCatalog


def create_app(catalog: Optional[RouteCatalog] = None) -> FastAPI:
    """
    Stateless route lookup: event id -> ordered waypoint list.

    Endpoints:
      GET /health
      GET /routes
      GET /routes/{event_id}
    """
    cat = catalog or RouteCatalog.load(os.environ.get("ROUTES_PATH", DEFAULT_ROUTES_PATH))
    app = FastAPI(title="AR Navigation Route API", version="1.0.0")

    # The AR page is usually served from another origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok", "routes": len(cat)}

    @app.get("/routes")
    def list_routes():
        return {"routes": cat.summary()}

    @app.get("/routes/{event_id}")
    def get_route(event_id: str):
        try:
            route = cat.get(event_id)
        except RouteNotFound as e:
            return JSONResponse(e.to_payload(), status_code=404)
        payload = route.to_dict()
        payload["title"] = cat.title(event_id)
        return payload

    return app


# -------- local dev entrypoint --------
if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
