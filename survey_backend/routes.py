"""
HTTP routes for the submissions API.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from survey_backend.config import Settings, get_settings
from survey_backend.dependencies import get_row_store
from survey_backend.schemas import StatusResponse
from survey_backend.store import RowStore
from survey_backend.submissions import GET_ALL_ACTION, ingest, retrieve

router = APIRouter()


@router.post("/submissions", response_model=StatusResponse)
async def submit(
    request: Request,
    store: RowStore = Depends(get_row_store),
    settings: Settings = Depends(get_settings),
):
    """
    Append a survey submission. The raw body is parsed here rather than by
    FastAPI so the page can post `text/plain` and skip the CORS preflight.
    """
    body = await request.body()
    result = await run_in_threadpool(
        ingest, body, store, table_name=settings.table_name
    )
    return JSONResponse(result)


@router.get("/submissions")
def get_submissions(
    action: str = Query(GET_ALL_ACTION),
    store: RowStore = Depends(get_row_store),
    settings: Settings = Depends(get_settings),
):
    return JSONResponse(retrieve(action, store, table_name=settings.table_name))
