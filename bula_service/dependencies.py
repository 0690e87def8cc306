"""
dependencies.py

Builds the external clients and the pipeline for each request.

Clients are created explicitly here and injected into the routes
with FastAPI's Depends. If a client cannot be built (missing API
key, missing cloud credentials, unknown OCR backend) an
InternalError is raised and the request fails with "internal".

Tests replace these functions with app.dependency_overrides.
"""

import logging

from fastapi import Depends
from google.cloud import firestore, vision
from openai import OpenAI

from bula_service.config import (
    FIRESTORE_COLLECTION,
    GOOGLE_CLOUD_PROJECT,
    OCR_BACKEND,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    OPENAI_VISION_MODEL,
    TESSERACT_CMD,
)
from bula_service.errors import InternalError
from bula_service.services.extractor import MedicineNameExtractor
from bula_service.services.leaflet_store import FirestoreLeafletStore
from bula_service.services.ocr import (
    GoogleVisionTextDetector,
    OCRService,
    OpenAIVisionTextDetector,
    TesseractTextDetector,
)
from bula_service.services.pipeline import BulaPipeline
from bula_service.services.resolver import LeafletResolver
from bula_service.services.summarizer import SummaryProvider

# Setup logging
logger = logging.getLogger(__name__)


def get_openai_client() -> OpenAI:
    if not OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is not configured")
        raise InternalError("Serviço de IA não configurado. Verifique a chave da API.")

    try:
        return OpenAI(api_key=OPENAI_API_KEY)
    except Exception as error:
        logger.error(f"Failed to create OpenAI client: {error}")
        raise InternalError("Falha ao inicializar o serviço de IA.") from error


def get_text_detector():
    """
    Build the text detector selected by OCR_BACKEND.
    """

    backend = OCR_BACKEND.strip().lower()

    try:
        if backend == "google-vision":
            return GoogleVisionTextDetector(vision.ImageAnnotatorClient())

        if backend == "openai-vision":
            return OpenAIVisionTextDetector(get_openai_client(), model=OPENAI_VISION_MODEL)

        if backend == "tesseract":
            return TesseractTextDetector(tesseract_cmd=TESSERACT_CMD)

    except InternalError:
        raise
    except Exception as error:
        logger.error(f"Failed to initialize text detector {backend!r}: {error}")
        raise InternalError(
            "Falha ao inicializar o serviço de OCR. Verifique as permissões."
        ) from error

    logger.error(f"Unknown OCR_BACKEND {OCR_BACKEND!r}")
    raise InternalError("Serviço de OCR não configurado.")


def get_leaflet_store() -> FirestoreLeafletStore:
    try:
        client = firestore.Client(project=GOOGLE_CLOUD_PROJECT)
    except Exception as error:
        logger.error(f"Failed to create Firestore client: {error}")
        raise InternalError("Falha ao conectar ao banco de dados de bulas.") from error

    return FirestoreLeafletStore(client, collection=FIRESTORE_COLLECTION)


def get_lookup_pipeline(
    openai_client: OpenAI = Depends(get_openai_client),
    store=Depends(get_leaflet_store)
) -> BulaPipeline:
    """Pipeline without OCR, for lookups by medicine name."""

    return BulaPipeline(
        resolver=LeafletResolver(store),
        summary_provider=SummaryProvider(openai_client, store, model=OPENAI_MODEL)
    )


def get_image_pipeline(
    detector=Depends(get_text_detector),
    openai_client: OpenAI = Depends(get_openai_client),
    store=Depends(get_leaflet_store)
) -> BulaPipeline:
    """Full pipeline, starting from a package photo."""

    return BulaPipeline(
        resolver=LeafletResolver(store),
        summary_provider=SummaryProvider(openai_client, store, model=OPENAI_MODEL),
        ocr_service=OCRService(detector),
        name_extractor=MedicineNameExtractor(openai_client, model=OPENAI_MODEL)
    )
