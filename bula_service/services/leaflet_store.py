"""
leaflet_store.py

Thin wrapper over the Firestore collection that holds the
medicine leaflets ("bulas").

Document fields (written by the data-entry process):
- nome_medicamento   -> official name
- nomes_alternativos -> lowercase alternate names
- bula_completa      -> full leaflet text
- resumos            -> cached summary (written by this service)

This module does not decide anything. Lookup order and
error handling live in the resolver and the summary provider.
"""

import logging
from typing import Any, Dict, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from bula_service.config import FIRESTORE_COLLECTION
from bula_service.schemas.bula import LeafletRecord

# Setup logging
logger = logging.getLogger(__name__)

OFFICIAL_NAME_FIELD = "nome_medicamento"
ALTERNATE_NAMES_FIELD = "nomes_alternativos"
FULL_TEXT_FIELD = "bula_completa"
SUMMARY_FIELD = "resumos"


def record_from_document(key: str, data: Dict[str, Any]) -> LeafletRecord:
    """Map a stored document to a LeafletRecord."""

    return LeafletRecord(
        key=key,
        official_name=data.get(OFFICIAL_NAME_FIELD) or "",
        alternate_names=list(data.get(ALTERNATE_NAMES_FIELD) or []),
        full_text=data.get(FULL_TEXT_FIELD),
        summary=data.get(SUMMARY_FIELD) or None,
    )


class FirestoreLeafletStore:
    """
    Leaflet records stored in a Firestore collection.

    Every query uses limit(1): when several documents match,
    the first one Firestore returns is used.
    """

    def __init__(self, client: firestore.Client, collection: str = FIRESTORE_COLLECTION):
        self.client = client
        self.collection = client.collection(collection)

    def _first(self, query) -> Optional[LeafletRecord]:
        for snapshot in query.limit(1).stream():
            return record_from_document(snapshot.id, snapshot.to_dict() or {})
        return None

    def find_by_official_name(self, name: str) -> Optional[LeafletRecord]:
        query = self.collection.where(filter=FieldFilter(OFFICIAL_NAME_FIELD, "==", name))
        return self._first(query)

    def find_by_alternate_name(self, name: str) -> Optional[LeafletRecord]:
        query = self.collection.where(
            filter=FieldFilter(ALTERNATE_NAMES_FIELD, "array_contains", name)
        )
        return self._first(query)

    def save_summary(self, key: str, summary: Dict[str, str]) -> None:
        # Single field update, other fields are left untouched
        self.collection.document(key).update({SUMMARY_FIELD: summary})
        logger.info(f"Summary saved on leaflet document {key}")
