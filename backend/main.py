"""
AquaSight - Water quality estimation from a photo.
FastAPI backend: upload an image of a water sample, get metrics, an overall label, safety flags and advice.
"""
import logging
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import API_TITLE, API_VERSION, Settings, get_settings
from errors import InvalidInputError, ProcessingError, WaterAnalysisError
from image_processor import analyze_image, get_demo_sample_png
from schemas import AnalysisResult, ErrorResponse
from water_quality import build_analysis_result

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=API_TITLE, version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing, empty or oversize upload"},
    500: {"model": ErrorResponse, "description": "Image could not be decoded or analyzed"},
}


@app.exception_handler(WaterAnalysisError)
async def analysis_error_handler(request: Request, exc: WaterAnalysisError) -> JSONResponse:
    """Uniform {error} body. Client errors keep their message; server errors get the generic one."""
    message = str(exc) if exc.status_code < 500 and str(exc) else exc.public_message
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed form data (e.g. 'file' sent as text) is a 400, not FastAPI's default 422."""
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=ErrorResponse(error=InvalidInputError.public_message).model_dump())


@app.get("/demo-image", response_class=Response)
def get_demo_image():
    """
    Sample water photo for demo mode: the frontend fetches this and posts it to /analyze.
    """
    return Response(content=get_demo_sample_png(), media_type="image/png")


@app.post("/analyze", response_model=AnalysisResult, responses=ERROR_RESPONSES)
def analyze(
    file: Optional[UploadFile] = File(None),
    app_settings: Settings = Depends(get_settings),
):
    """Estimate water quality from an uploaded photo. All-or-nothing: no partial results."""
    if file is None:
        logger.warning("Rejected /analyze request: no file supplied")
        raise InvalidInputError("Invalid file input")

    try:
        contents = file.file.read()
    except OSError as e:
        logger.warning("Could not read upload %r: %s", file.filename, e)
        raise InvalidInputError("Invalid image: could not read file") from e

    if not contents:
        logger.warning("Rejected upload %r: empty file", file.filename)
        raise InvalidInputError("Invalid image: empty file")

    limit = app_settings.max_upload_bytes
    if limit and len(contents) > limit:
        logger.warning("Rejected upload %r: %d bytes exceeds limit of %d", file.filename, len(contents), limit)
        raise InvalidInputError(f"Invalid image: file exceeds {limit} bytes")

    logger.info("Analyzing upload %r (%s, %d bytes)", file.filename, file.content_type, len(contents))
    try:
        metrics = analyze_image(contents)
        result = build_analysis_result(metrics)
    except WaterAnalysisError:
        logger.error("Analysis failed for %r (%d bytes)", file.filename, len(contents), exc_info=True)
        raise
    except Exception as e:
        logger.exception("Unexpected error analyzing %r (%d bytes)", file.filename, len(contents))
        raise ProcessingError(str(e)) from e

    logger.info("Upload %r rated %s", file.filename, result.overall_quality)
    return result


@app.get("/health")
def health():
    return {
        "status": "active",
        "version": API_VERSION,
        "features": [
            "image_analysis",
            "quality_classification",
            "safety_assessment",
            "recommendations",
            "demo_image",
        ],
    }


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
