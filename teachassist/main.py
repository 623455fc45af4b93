"""FastAPI application entrypoint."""

import logging
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy import text
from sqlmodel import Session

from teachassist import db
from teachassist.auth import require_api_key
from teachassist.routers.ai import router as ai_router
from teachassist.routers.assignments import router as assignments_router
from teachassist.routers.courses import router as courses_router
from teachassist.routers.submissions import router as submissions_router
from teachassist.routers.users import router as users_router
from teachassist.settings import settings

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (users_router, courses_router, assignments_router, submissions_router, ai_router):
    app.include_router(router, prefix="/api", dependencies=[Depends(require_api_key)])


@app.on_event("startup")
def on_startup() -> None:
    settings.data_path.mkdir(parents=True, exist_ok=True)
    db.create_db_and_tables()


@app.get("/health", tags=["meta"])
def health() -> dict[str, bool]:
    openai_api_key = os.getenv("OPENAI_API_KEY", "")
    return {"ok": True, "openai_configured": bool(openai_api_key.strip())}


@app.get("/health/deep", tags=["meta"])
def deep_health() -> dict[str, bool | str]:
    openai_api_key = os.getenv("OPENAI_API_KEY", "")

    db_ok = False
    try:
        with Session(db.engine) as session:
            session.exec(text("SELECT 1"))
        db_ok = True
    except Exception:
        logger.exception("health/deep database probe failed")

    return {
        "ok": True,
        "openai_configured": bool(openai_api_key.strip()),
        "openai_mock": os.getenv("OPENAI_MOCK", "").strip() == "1",
        "data_dir": str(settings.data_path),
        "db_ok": db_ok,
    }


@app.options("/{path:path}", include_in_schema=False)
async def preflight(path: str) -> Response:
    del path
    return Response(status_code=204)
