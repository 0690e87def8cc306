"""
ocr.py

This file reads a photo of a medicine package
and extracts the readable text from it.

Text detection backends:
1. Google Cloud Vision (default, same service the mobile app used)
2. OpenAI Vision API (chat model asked to transcribe the box)
3. Tesseract OCR (local, free, offline)

Every backend returns an ordered list of text annotations.
The first annotation is the full text of the image.
An empty list means "no legible text".

This file:
- Only returns extracted text
- Does NOT save images anywhere
- Does NOT contain FastAPI routes
- Does NOT talk to the database
"""

import io
import base64
import logging
from typing import List, Optional

import cv2
import numpy as np
from google.cloud import vision
from openai import OpenAI
from PIL import Image
import pytesseract

from bula_service.config import OPENAI_VISION_MODEL
from bula_service.errors import InternalError, NotFoundError

# Setup logging
logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = (
    "Nenhum texto de medicamento detectado na imagem. "
    "Tente novamente com uma imagem mais clara."
)


class GoogleVisionTextDetector:
    """
    Text detection with Google Cloud Vision.

    Vision returns `text_annotations` where element 0 holds the
    full text and the following elements hold individual words.
    """

    def __init__(self, client: vision.ImageAnnotatorClient):
        self.client = client

    def detect_text(self, image_bytes: bytes) -> List[str]:
        image = vision.Image(content=image_bytes)
        response = self.client.text_detection(image=image)

        # Vision reports some failures inside the response instead of raising
        if response.error.message:
            raise RuntimeError(f"Vision API error: {response.error.message}")

        return [annotation.description for annotation in response.text_annotations]


class OpenAIVisionTextDetector:
    """
    Text detection with an OpenAI vision model.

    The model is asked to transcribe the package text only.
    It answers with one block of text, so the result has at most
    one annotation.
    """

    def __init__(self, client: OpenAI, model: str = OPENAI_VISION_MODEL):
        self.client = client
        self.model = model

    def detect_text(self, image_bytes: bytes) -> List[str]:
        """
        What happens here:
        1. Convert image to base64 format
        2. Send to OpenAI Vision API
        3. Return the transcription as a single annotation
        """

        # Step 1: OpenAI API needs base64 format
        base64_image = base64.b64encode(image_bytes).decode("utf-8")

        # Step 2: Call OpenAI Vision API
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": """Transcreva TODO o texto visível nesta caixa de medicamento.
                            Preserve a ordem das linhas.
                            Retorne APENAS o texto transcrito, sem explicações.
                            Se não houver texto legível, retorne uma resposta vazia."""
                        },
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:image/jpeg;base64,{base64_image}"
                            }
                        }
                    ]
                }
            ],
            max_tokens=1000
        )

        # Step 3: Empty transcription means no detections
        text = (response.choices[0].message.content or "").strip()
        return [text] if text else []


class TesseractTextDetector:
    """
    Text detection with a local Tesseract install.

    The image is preprocessed with OpenCV first. The full text is
    returned as the first annotation, followed by each word.
    """

    def __init__(self, tesseract_cmd: Optional[str] = None, config: str = "--oem 3 --psm 6"):
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.config = config

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Prepare a package photo for OCR.

        1. Resize if too small
        2. Convert to grayscale
        3. Enhance contrast with CLAHE
        4. Otsu thresholding (dark text on white background)
        """

        img_array = np.array(image.convert("RGB"))

        # Bigger images = better OCR accuracy
        height, width = img_array.shape[:2]
        if width < 1000:
            scale = 1000 / width
            img_array = cv2.resize(
                img_array,
                (1000, int(height * scale)),
                interpolation=cv2.INTER_CUBIC
            )

        gray = cv2.cvtColor(img_array, cv2.COLOR_RGB2GRAY)

        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        enhanced = clahe.apply(gray)

        _, binary = cv2.threshold(
            enhanced,
            0,
            255,
            cv2.THRESH_BINARY + cv2.THRESH_OTSU
        )

        # Boxes often print light text on a dark band
        if np.mean(binary) < 127:
            binary = cv2.bitwise_not(binary)

        return Image.fromarray(binary)

    def detect_text(self, image_bytes: bytes) -> List[str]:
        image = Image.open(io.BytesIO(image_bytes))
        processed = self._preprocess_image(image)

        full_text = pytesseract.image_to_string(processed, config=self.config).strip()
        if not full_text:
            return []

        data = pytesseract.image_to_data(
            processed,
            config=self.config,
            output_type=pytesseract.Output.DICT
        )
        words = [word for word in data["text"] if word.strip()]

        return [full_text] + words


class OCRService:
    """
    OCRService is responsible for one job only:
    turning the package photo into its full text.

    It makes exactly one call to the configured detector.
    Retries are left to the caller.
    """

    def __init__(self, detector):
        self.detector = detector

    def extract_text(self, image_bytes: bytes) -> str:
        """
        Return the primary (full) text detected in the image.

        Raises:
        - NotFoundError when nothing legible was detected
        - InternalError when the detection call itself failed
        """

        logger.info("Running text detection on image...")

        try:
            annotations = self.detector.detect_text(image_bytes)
        except Exception as error:
            logger.error(f"Text detection failed: {error}")
            raise InternalError(
                "Erro ao processar a imagem com OCR. Tente novamente mais tarde."
            ) from error

        if not annotations or not annotations[0].strip():
            logger.info("No text detected in image")
            raise NotFoundError(NO_TEXT_MESSAGE)

        full_text = annotations[0]
        logger.info(f"OCR text length: {len(full_text)} characters")
        logger.debug(f"OCR text: {full_text}")

        return full_text
