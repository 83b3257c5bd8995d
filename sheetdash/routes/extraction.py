"""Table extraction route"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..services.table_extractor import extract_tables

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Extraction"])


@router.post("/api/extract-tables")
async def extract_tables_route(request: Request):
    """Extract tables from document text"""
    try:
        payload = await request.json()
        text = payload.get("text") if isinstance(payload, dict) else None
        if not text:
            return JSONResponse({"error": "No text provided"}, status_code=400)

        logger.info(f"Extracting tables from {len(text)} chars of text")
        result = await extract_tables(text)
        return JSONResponse(result, status_code=200)
    except Exception as e:
        logger.exception(f"Table extraction failed: {e}")
        return JSONResponse({"error": "Internal error", "tables": []}, status_code=200)
