"""
bula.py (Schemas)

Pydantic models used by the bula pipeline and its API.

These schemas define:
- The leaflet record as it is stored in the document database
- The request bodies accepted by the bula endpoints
- The summary response returned to the mobile app

Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


# Five keys of a leaflet summary, in display order
SUMMARY_KEYS = (
    "contraindications",
    "usage",
    "dosage",
    "adverseReactions",
    "risksAndPrecautions",
)


class LeafletRecord(BaseModel):
    """
    A stored leaflet ("bula") document.

    Records are created by a separate data-entry process.
    This service only reads them and adds `summary` once.
    """

    key: str = Field(
        ...,
        description="Opaque document key in the store"
    )

    official_name: str = Field(
        ...,
        alias="officialName",
        description="Canonical medicine name",
        examples=["Paracetamol"]
    )

    alternate_names: List[str] = Field(
        default_factory=list,
        alias="alternateNames",
        description="Lowercase synonyms used for fallback matching",
        examples=[["tylenol", "acetaminofeno"]]
    )

    full_text: Optional[str] = Field(
        default=None,
        alias="fullText",
        description="Complete leaflet text"
    )

    summary: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Cached five-key summary, written once"
    )

    class Config:
        populate_by_name = True

    def has_summary(self) -> bool:
        return bool(self.summary)


class ProcessImageRequest(BaseModel):
    """
    Request body for POST /bula/process-image.

    imageData is optional here so that a missing image is reported
    as invalid-argument by the pipeline instead of a 422.
    """

    image_data: Optional[str] = Field(
        default=None,
        alias="imageData",
        description="Base64 encoded photo of the medicine package",
    )

    class Config:
        populate_by_name = True


class BulaSummaryRequest(BaseModel):
    """Request body for POST /bula/summary (lookup by name, no OCR)."""

    medicine_name: Optional[str] = Field(
        default=None,
        alias="medicineName",
        description="Medicine name to look up",
        examples=["Paracetamol"]
    )

    class Config:
        populate_by_name = True


class SummaryResult(BaseModel):
    """
    Summary returned to the caller.

    source tells whether the summary came from the store ("cached")
    or was produced in this request ("generated").
    """

    official_name: str = Field(
        ...,
        alias="officialName",
        examples=["Paracetamol"]
    )

    summary: Dict[str, Any] = Field(
        ...,
        description="Five-key leaflet summary"
    )

    source: Literal["cached", "generated"] = Field(
        ...,
        examples=["generated"]
    )

    class Config:
        populate_by_name = True
