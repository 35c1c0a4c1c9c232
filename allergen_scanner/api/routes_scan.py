from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from allergen_scanner.api.error_handlers import scan_error_to_http
from allergen_scanner.api.schemas_scan import AllergenIn, ScanAnalysisRequest, ScanAnalysisResponse
from allergen_scanner.errors import ScanError, ValidationError
from allergen_scanner.pipelines.scan_pipeline import ScanPipeline

router = APIRouter(prefix="/api/analyze", tags=["analyze"])

logger = logging.getLogger(__name__)

_ALLERGEN_LIST = TypeAdapter(List[AllergenIn])


@lru_cache(maxsize=1)
def get_scan_pipeline() -> ScanPipeline:
    """
    Dependency provider; the analyzer is created once per process.
    Tests swap it through app.dependency_overrides.
    """
    return ScanPipeline()


async def _run_scan(pipeline: ScanPipeline, image, allergens: List[AllergenIn]) -> ScanAnalysisResponse:
    try:
        out = await pipeline.run(image, [a.to_domain() for a in allergens])
    except ScanError as e:
        raise scan_error_to_http(e) from e
    return ScanAnalysisResponse.from_result(out.result)


@router.post("", response_model=ScanAnalysisResponse)
async def analyze(
    req: ScanAnalysisRequest,
    pipeline: ScanPipeline = Depends(get_scan_pipeline),
):
    """
    Analyze a base64-encoded photo of a food label against the user's allergens.

    isSafe is null when the photo was too unclear to trust; the text fields then
    carry retake guidance.
    """
    return await _run_scan(pipeline, req.base64_image, req.allergens)


@router.post("/upload", response_model=ScanAnalysisResponse)
async def analyze_upload(
    file: UploadFile = File(...),
    allergens: str = Form("[]"),
    pipeline: ScanPipeline = Depends(get_scan_pipeline),
):
    """Multipart variant: raw image file plus the allergen list as a JSON string field."""
    try:
        parsed = _ALLERGEN_LIST.validate_json(allergens or "[]")
    except SchemaValidationError as e:
        logger.info("analyze_upload invalid_allergens filename=%s", file.filename)
        raise scan_error_to_http(ValidationError(f"Invalid allergens field: {e.error_count()} error(s)")) from e

    data = await file.read()
    return await _run_scan(pipeline, data, parsed)
