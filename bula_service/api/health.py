from fastapi import APIRouter

from bula_service.config import OCR_BACKEND

router = APIRouter()


@router.get(
    "",
    status_code=200,
    summary="Health check",
    description="Health check endpoint for the Bula service. Also reports the configured OCR backend."
)
def health_check():
    return {"status": "ok", "ocrBackend": OCR_BACKEND}
