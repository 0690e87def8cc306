"""
pipeline.py

Wires the bula stages together:

image -> validate -> OCR -> medicine name -> leaflet -> summary

Each stage consumes the output of the previous one and any
failure stops the remaining stages. All collaborators are passed
in by the caller (see bula_service/dependencies.py).
"""

import logging
from typing import Optional, Union

from bula_service.errors import InternalError, InvalidArgumentError
from bula_service.schemas.bula import SummaryResult
from bula_service.services.extractor import MedicineNameExtractor
from bula_service.services.ocr import OCRService
from bula_service.services.resolver import LeafletResolver
from bula_service.services.summarizer import SummaryProvider
from bula_service.services.validator import validate_image_payload

# Setup logging
logger = logging.getLogger(__name__)


class BulaPipeline:
    """
    Runs one bula request from start to finish.

    ocr_service and name_extractor may be None when the pipeline is
    only used for lookups by name.
    """

    def __init__(
        self,
        resolver: LeafletResolver,
        summary_provider: SummaryProvider,
        ocr_service: Optional[OCRService] = None,
        name_extractor: Optional[MedicineNameExtractor] = None
    ):
        self.resolver = resolver
        self.summary_provider = summary_provider
        self.ocr_service = ocr_service
        self.name_extractor = name_extractor

    def process_image_and_get_bula(self, image_data: Union[str, bytes, None]) -> SummaryResult:
        """
        Full pipeline: package photo in, leaflet summary out.

        Parameters:
        - image_data: base64 string (or raw bytes) of the photo

        Returns:
        - SummaryResult with source "cached" or "generated"
        """

        # Step 1: Reject bad input before any remote call
        image_bytes = validate_image_payload(image_data)

        if self.ocr_service is None or self.name_extractor is None:
            raise InternalError("Serviço de leitura de imagem não configurado.")

        # Step 2: Image -> text
        ocr_text = self.ocr_service.extract_text(image_bytes)

        # Step 3: Text -> medicine name
        medicine_name = self.name_extractor.extract_name(ocr_text)

        # Step 4 and 5: Name -> leaflet -> summary
        return self.get_bula_summary(medicine_name)

    def get_bula_summary(self, medicine_name: Optional[str]) -> SummaryResult:
        """
        Lookup by name, skipping OCR and name extraction.
        """

        if not medicine_name or not medicine_name.strip():
            raise InvalidArgumentError("O nome do medicamento é obrigatório.")

        record = self.resolver.resolve(medicine_name)
        result = self.summary_provider.get_summary(record)

        logger.info(f"Bula for {result.official_name!r} returned ({result.source})")
        return result
