"""
FastAPI application for the source-to-flowchart converter.

Small REST surface over the flowgraph package: convert source code to
Mermaid flowchart text or to flow-graph JSON, and validate Mermaid text.
Settings are loaded once at startup and kept on ``app.state``.
"""

from __future__ import annotations

import asyncio
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from flowgraph.builder import code_to_flowgraph
from flowgraph.config import Settings, load_settings
from flowgraph.flow_ast import to_json
from flowgraph.mermaid import code_to_mermaid
from flowgraph.validate_mermaid import count_elements, validate_mermaid


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = load_settings()
    print(
        f"[server] Started (direction={app.state.settings.direction}, "
        f"label_max_chars={app.state.settings.label_max_chars})",
        file=sys.stderr,
    )
    try:
        yield
    finally:
        print("[server] Shutdown complete", file=sys.stderr)


app = FastAPI(title="Code Flowgraph — Source to Mermaid", lifespan=lifespan)


def _settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or Settings()


async def _read_json(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


async def _read_code(request: Request) -> tuple[str, dict]:
    body = await _read_json(request)
    code = body.get("code")
    if not isinstance(code, str):
        raise HTTPException(status_code=400, detail="code is required and must be a string")
    limit = _settings(request).max_input_chars
    if len(code) > limit:
        raise HTTPException(status_code=413, detail=f"code exceeds {limit} characters")
    return code, body


def _read_flag(body: dict, key: str, default: bool) -> bool:
    value = body.get(key, default)
    if not isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{key} must be a boolean")
    return value


# ──────────────────────────────────────────────────────────────────
# REST API
# ──────────────────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    return JSONResponse(content={"status": "ok"})


@app.post("/api/flowchart")
async def flowchart(request: Request):
    """Convert source code to Mermaid flowchart text."""
    code, body = await _read_code(request)
    settings = _settings(request)
    mermaid = code_to_mermaid(
        code,
        max_label_chars=settings.label_max_chars,
        direction=settings.direction,
        fenced=_read_flag(body, "fenced", False),
    )
    return JSONResponse(content={"mermaid": mermaid, **count_elements(mermaid)})


@app.post("/api/flowchart/graph")
async def flowchart_graph(request: Request):
    """Convert source code to the flow graph JSON."""
    code, _ = await _read_code(request)
    settings = _settings(request)
    graph = code_to_flowgraph(
        code,
        max_label_chars=settings.label_max_chars,
        direction=settings.direction,
    )
    return JSONResponse(content=to_json(graph))


@app.post("/api/validate")
async def validate(request: Request):
    """Validate Mermaid flowchart text."""
    body = await _read_json(request)
    mermaid = body.get("mermaid")
    if not isinstance(mermaid, str):
        raise HTTPException(status_code=400, detail="mermaid is required and must be a string")

    use_mmdc = _read_flag(body, "mmdc", _settings(request).validate_with_mmdc)
    # mmdc runs in a subprocess; keep it off the event loop
    loop = asyncio.get_event_loop()
    is_valid, error = await loop.run_in_executor(None, validate_mermaid, mermaid, use_mmdc)
    return JSONResponse(content={
        "valid": is_valid,
        "error": error or None,
        **count_elements(mermaid),
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=True)
