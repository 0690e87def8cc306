"""
Shared fakes for the bula tests.

- FakeChatClient stands in for the OpenAI client (chat.completions.create)
- FakeTextDetector stands in for the OCR backend
- InMemoryLeafletStore stands in for the Firestore collection
"""

import base64
from types import SimpleNamespace

import pytest

from bula_service.schemas.bula import LeafletRecord


FULL_TEXT = (
    "PARACETAMOL 500 mg. Contraindicações: hipersensibilidade ao paracetamol. "
    "Posologia: 1 comprimido a cada 6 horas. Reações adversas: raras."
)

GENERATED_SUMMARY = {
    "contraindications": "Hipersensibilidade ao paracetamol.",
    "usage": "Ingerir o comprimido com água.",
    "dosage": "1 comprimido a cada 6 horas.",
    "adverseReactions": "Raras.",
    "risksAndPrecautions": "Não especificado na bula.",
}


class _Completions:
    def __init__(self, owner):
        self.owner = owner

    def create(self, **kwargs):
        self.owner.calls.append(kwargs)
        if not self.owner.responses:
            raise AssertionError("Unexpected call to the chat model")
        answer = self.owner.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        message = SimpleNamespace(content=answer)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeChatClient:
    """Returns the queued answers in order; queued exceptions are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.chat = SimpleNamespace(completions=_Completions(self))

    @property
    def prompts(self):
        return [call["messages"][-1]["content"] for call in self.calls]


class FakeTextDetector:
    def __init__(self, annotations=None, error=None):
        self.annotations = annotations or []
        self.error = error
        self.calls = []

    def detect_text(self, image_bytes):
        self.calls.append(image_bytes)
        if self.error is not None:
            raise self.error
        return list(self.annotations)


class InMemoryLeafletStore:
    """Keeps records in insertion order, like limit(1) on a small collection."""

    def __init__(self, records=(), error=None):
        self.records = {record.key: record for record in records}
        self.error = error
        self.queries = []
        self.saved = []

    def _check(self):
        if self.error is not None:
            raise self.error

    def find_by_official_name(self, name):
        self.queries.append(("official", name))
        self._check()
        for record in self.records.values():
            if record.official_name == name:
                return record.model_copy(deep=True)
        return None

    def find_by_alternate_name(self, name):
        self.queries.append(("alternate", name))
        self._check()
        for record in self.records.values():
            if name in record.alternate_names:
                return record.model_copy(deep=True)
        return None

    def save_summary(self, key, summary):
        self._check()
        self.saved.append((key, summary))
        self.records[key].summary = dict(summary)


def make_record(**overrides):
    data = {
        "key": "doc-paracetamol",
        "official_name": "Paracetamol",
        "alternate_names": ["tylenol", "acetaminofeno"],
        "full_text": FULL_TEXT,
        "summary": None,
    }
    data.update(overrides)
    return LeafletRecord(**data)


def encode_image(raw=b"\x89PNG fake image bytes"):
    return base64.b64encode(raw).decode("ascii")


@pytest.fixture
def record():
    return make_record()


@pytest.fixture
def store(record):
    return InMemoryLeafletStore([record])
