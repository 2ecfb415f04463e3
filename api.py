"""
API layer for managing memos using FastAPI.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from config import configure_logging, create_store, load_settings
from database import MemoRepository
from models import Memo, MemoFormData
from table_store import NotFoundError, StoreError

logger = logging.getLogger(__name__)


# --- LIFESPAN MANAGER ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # 1. Settings and logging
    settings = load_settings()
    configure_logging(settings.log_level)

    # 2. Store and repository
    store = await create_store(settings)
    app.state.backend = store.name
    app.state.repository = MemoRepository(store, table=settings.table)

    logger.info("Startup: memo store ready (%s).", store.name)
    yield
    await store.close()
    logger.info("Shutdown: cleanup complete.")


app = FastAPI(title="Memo Store", lifespan=lifespan)


def get_repository(request: Request) -> MemoRepository:
    return request.app.state.repository


# --- MODELS ---
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MemoPayload(CamelModel):
    title: str
    content: str
    category: str
    tags: list[str]

    def to_form(self) -> MemoFormData:
        return MemoFormData(
            title=self.title,
            content=self.content,
            category=self.category,
            tags=list(self.tags),
        )


class MemoResponse(CamelModel):
    id: str
    title: str
    content: str
    category: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_memo(cls, memo: Memo) -> "MemoResponse":
        return cls(
            id=memo.id,
            title=memo.title,
            content=memo.content,
            category=memo.category,
            tags=memo.tags,
            created_at=memo.created_at,
            updated_at=memo.updated_at,
        )


class StatsResponse(CamelModel):
    total: int
    by_category: dict[str, int]


# --- ERROR HANDLERS ---
# Reads never raise; these only fire for failed writes.


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Memo not found", "code": exc.code},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.message, "code": exc.code},
    )


# --- ROUTES ---


@app.get("/memos", response_model=list[MemoResponse])
async def list_memos(
    category: str | None = None,
    q: str | None = None,
    repo: MemoRepository = Depends(get_repository),
):
    if q is not None:
        memos = await repo.search(q)
    elif category is not None:
        memos = await repo.get_by_category(category)
    else:
        memos = await repo.get_all()
    return [MemoResponse.from_memo(memo) for memo in memos]


@app.get("/memos/stats", response_model=StatsResponse)
async def memo_stats(repo: MemoRepository = Depends(get_repository)):
    stats = await repo.get_stats()
    return StatsResponse(total=stats.total, by_category=stats.by_category)


@app.get("/memos/{memo_id}", response_model=MemoResponse)
async def get_memo(memo_id: str, repo: MemoRepository = Depends(get_repository)):
    memo = await repo.get_by_id(memo_id)
    if memo is None:
        raise HTTPException(status_code=404, detail="Memo not found")
    return MemoResponse.from_memo(memo)


@app.post("/memos", response_model=MemoResponse, status_code=201)
async def create_memo(
    payload: MemoPayload, repo: MemoRepository = Depends(get_repository)
):
    memo = await repo.add(payload.to_form())
    return MemoResponse.from_memo(memo)


@app.put("/memos/{memo_id}", response_model=MemoResponse)
async def update_memo(
    memo_id: str,
    payload: MemoPayload,
    repo: MemoRepository = Depends(get_repository),
):
    memo = await repo.update(memo_id, payload.to_form())
    return MemoResponse.from_memo(memo)


@app.delete("/memos/{memo_id}", status_code=204)
async def delete_memo(memo_id: str, repo: MemoRepository = Depends(get_repository)):
    await repo.remove(memo_id)
    return Response(status_code=204)


@app.delete("/memos", status_code=204)
async def clear_memos(repo: MemoRepository = Depends(get_repository)):
    await repo.clear_all()
    return Response(status_code=204)


# health check
@app.get("/health")
async def health_check(request: Request):
    """
    Simple health check endpoint.
    """
    return {"status": "operational", "backend": request.app.state.backend}
