"""
config.py

Central place to load environment variables.
"""

from dotenv import load_dotenv
import os

# Load variables from .env file into environment
load_dotenv()

# OpenAI (name extraction, leaflet summaries, optional vision OCR)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4.1")

# Text detection backend: google-vision, openai-vision or tesseract
OCR_BACKEND = os.getenv("OCR_BACKEND", "google-vision")

# Path to the Tesseract executable (only used by the tesseract backend)
TESSERACT_CMD = os.getenv("TESSERACT_CMD")

# Firestore
GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
FIRESTORE_COLLECTION = os.getenv("FIRESTORE_COLLECTION", "medicamentos")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
