"""
bula.py (API Route)

Bula endpoints used by the mobile app.

Endpoints:
- POST /bula/process-image - photo of the package -> leaflet summary
- POST /bula/summary       - medicine name -> leaflet summary (no OCR)

What this file does NOT do:
- Run OCR or call the language model directly (delegates to BulaPipeline)
- Talk to the database directly

Pipeline errors (invalid-argument, not-found, internal) are turned
into HTTP responses by the handler registered in main.py.
Anything unexpected becomes a generic 500.

Flow:
Mobile app -> This API -> BulaPipeline -> OCR / OpenAI / Firestore -> JSON
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from bula_service.dependencies import get_image_pipeline, get_lookup_pipeline
from bula_service.errors import BulaServiceError
from bula_service.schemas.bula import BulaSummaryRequest, ProcessImageRequest, SummaryResult
from bula_service.services.pipeline import BulaPipeline

# Setup logging
logger = logging.getLogger(__name__)

# Create a router for bula endpoints
# This router will be registered in main.py
router = APIRouter()

UNEXPECTED_ERROR_DETAIL = {
    "code": "internal",
    "message": "Ocorreu um erro inesperado ao processar a solicitação de bula."
}


@router.post(
    "/process-image",
    response_model=SummaryResult,
    status_code=status.HTTP_200_OK,
    summary="Identify a medicine from a photo and return its leaflet summary",
    description=(
        "Send a base64 photo of a medicine package. The text is read with OCR, "
        "the medicine name is identified and the stored leaflet summary is "
        "returned (generated and saved on first use)."
    )
)
def process_image_and_get_bula(
    request: ProcessImageRequest,
    pipeline: BulaPipeline = Depends(get_image_pipeline)
):
    """
    Errors:
    - 400 invalid-argument: image missing, empty or not base64
    - 404 not-found: no text, no medicine name, or no leaflet
    - 500 internal: service failure or unusable model output

    Called by:
    - Mobile app (camera and gallery buttons)
    """

    try:
        return pipeline.process_image_and_get_bula(request.image_data)

    except BulaServiceError:
        # Handled by the exception handler in main.py
        raise

    except Exception:
        logger.exception("Unexpected error while processing image")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=UNEXPECTED_ERROR_DETAIL
        )


@router.post(
    "/summary",
    response_model=SummaryResult,
    status_code=status.HTTP_200_OK,
    summary="Return the leaflet summary for a medicine name",
    description="Text-only lookup. Skips OCR and name extraction."
)
def get_bula_summary(
    request: BulaSummaryRequest,
    pipeline: BulaPipeline = Depends(get_lookup_pipeline)
):
    try:
        return pipeline.get_bula_summary(request.medicine_name)

    except BulaServiceError:
        raise

    except Exception:
        logger.exception("Unexpected error while looking up leaflet")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=UNEXPECTED_ERROR_DETAIL
        )
