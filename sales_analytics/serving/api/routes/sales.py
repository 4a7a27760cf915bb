"""
Sales API Endpoints

Paged listing of the stored transactions and spreadsheet upload.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from sales_analytics.analytics.exceptions import InvalidParameterError
from sales_analytics.analytics.params import parse_page
from sales_analytics.analytics.sales_listing import SalesPage, build_sales_page
from sales_analytics.database.store import SalesStore
from sales_analytics.ingestion.batch_loader import BatchLoader, LoadResult
from sales_analytics.serving.api.dependencies import get_store

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("", response_model=SalesPage)
async def list_sales(
    response: Response,
    page: Optional[str] = Query(None, description="Page number (1-10000)"),
    page_size: Optional[str] = Query(None, alias="pageSize", description="Rows per page (1-500)"),
    store: SalesStore = Depends(get_store),
) -> SalesPage:
    """
    Latest stored transactions, paged.
    """
    page_value, page_size_value = parse_page(page, page_size)
    payload = await build_sales_page(store, page=page_value, page_size=page_size_value)
    response.headers["Cache-Control"] = "no-store"
    return payload


@router.post("/upload", response_model=LoadResult)
async def upload_sales(
    response: Response,
    file: Optional[UploadFile] = File(None),
    store: SalesStore = Depends(get_store),
) -> LoadResult:
    """
    Replace every stored transaction with the rows of an uploaded extract.

    The first sheet of an Excel workbook is read; CSV and Parquet files are
    accepted too.
    """
    if file is None or not file.filename:
        raise InvalidParameterError("Missing 'file' field", parameter="file")

    content = await file.read()
    logger.info("Sales upload received", filename=file.filename, size=len(content))

    result = await BatchLoader(store).load_bytes(content, file.filename)
    response.headers["Cache-Control"] = "no-store"
    return result
