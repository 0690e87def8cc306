"""
summarizer.py

Summary provider for leaflet records.

Flow:
1. Record already has a summary -> return it under the five keys ("cached")
2. No full text to summarize    -> InternalError
3. Ask the model for a five-key JSON summary of the full text
4. Parse the answer (fenced ```json block first, raw text second)
5. Backfill missing keys, save the summary on the record ("generated")

A written summary is never regenerated. Two requests summarizing the
same record at the same time may both write; the last write wins and
both hold equivalent content.
"""

from openai import OpenAI
from typing import Any, Dict
import json
import logging
import re

from bula_service.config import OPENAI_MODEL
from bula_service.errors import InternalError
from bula_service.schemas.bula import LeafletRecord, SummaryResult, SUMMARY_KEYS

# Setup logging
logger = logging.getLogger(__name__)

# Value the model must use when the leaflet says nothing about a topic
NOT_IN_LEAFLET = "Não especificado na bula."

# Value used when the model left a key out of its answer
MISSING_KEY_PLACEHOLDER = "Não especificado ou não gerado pelo modelo."

# Keys used by summaries stored before this service existed
LEGACY_SUMMARY_KEYS = {
    "contraindications": "contraindicacoes",
    "usage": "como_usar",
    "dosage": "posologia",
    "adverseReactions": "reacoes_adversas",
    "risksAndPrecautions": "riscos_cuidados",
}

JSON_FENCE = re.compile(r"```json\s*(.*?)```", re.DOTALL)

SUMMARY_PROMPT_TEMPLATE = """
Dado o seguinte texto de bula de medicamento, por favor, extraia e resuma os seguintes pontos-chave de forma clara e concisa em português:

1.  **Contraindicações:**
2.  **Como usar / Modo de Uso:**
3.  **Posologia:**
4.  **Quais as reações adversas e os efeitos colaterais:**
5.  **Riscos e Cuidados (incluindo interações medicamentosas, gravidez, amamentação, etc.):**

Formate a saída como um objeto JSON com exatamente as chaves "contraindications", "usage", "dosage", "adverseReactions" e "risksAndPrecautions", na ordem dos pontos acima, e os valores são os resumos em texto. Se alguma informação não estiver explicitamente presente na bula, use "{not_in_leaflet}" como valor para aquela chave.

Exemplo de formato de saída JSON:
{{
  "contraindications": "Não usar se tiver alergia a X ou Y.",
  "usage": "Ingerir 1 comprimido com água.",
  "dosage": "1 comprimido a cada 8 horas.",
  "adverseReactions": "Náuseas, tontura.",
  "risksAndPrecautions": "Evitar álcool. Consultar médico em caso de gravidez."
}}

---
Texto da Bula:
{full_text}
---
"""


class SummaryParseError(ValueError):
    """The model answer is not a JSON object."""


def build_summary_prompt(full_text: str) -> str:
    return SUMMARY_PROMPT_TEMPLATE.format(not_in_leaflet=NOT_IN_LEAFLET, full_text=full_text)


def parse_summary_json(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object from a model answer.

    Attempts, in order:
    1. content of a ```json fenced block
    2. the whole answer as raw JSON

    Raises:
    - SummaryParseError when neither attempt yields a JSON object
    """

    if text is None:
        raise SummaryParseError("Empty model response")

    match = JSON_FENCE.search(text)
    candidate = match.group(1) if match else text

    try:
        parsed = json.loads(candidate.strip())
    except json.JSONDecodeError as error:
        raise SummaryParseError(f"Model response is not valid JSON: {error}") from error

    if not isinstance(parsed, dict):
        raise SummaryParseError(
            f"Model response is JSON but not an object ({type(parsed).__name__})"
        )

    return parsed


def finalize_summary(parsed: Dict[str, Any]) -> Dict[str, str]:
    """
    Build the five-key summary that gets stored.

    Missing or null keys get MISSING_KEY_PLACEHOLDER, unknown keys
    are dropped and other values are converted to text.
    """

    summary: Dict[str, str] = {}

    for key in SUMMARY_KEYS:
        value = parsed.get(key)
        if value is None:
            logger.warning(f"Key {key!r} missing from generated summary, using placeholder")
            summary[key] = MISSING_KEY_PLACEHOLDER
        elif isinstance(value, str):
            summary[key] = value
        else:
            summary[key] = json.dumps(value, ensure_ascii=False)

    extra_keys = set(parsed) - set(SUMMARY_KEYS)
    if extra_keys:
        logger.debug(f"Ignoring unexpected summary keys: {sorted(extra_keys)}")

    return summary


def normalize_cached_summary(cached: Dict[str, Any]) -> Dict[str, Any]:
    """
    Present a stored summary under the five current keys.

    Summaries written by the mobile app's cloud function use Portuguese
    keys; those are renamed. Values are returned as stored and missing
    keys get MISSING_KEY_PLACEHOLDER. Nothing is written back.
    """

    summary: Dict[str, Any] = {}

    for key in SUMMARY_KEYS:
        if key in cached:
            summary[key] = cached[key]
        elif LEGACY_SUMMARY_KEYS[key] in cached:
            summary[key] = cached[LEGACY_SUMMARY_KEYS[key]]
        else:
            summary[key] = MISSING_KEY_PLACEHOLDER

    return summary


class SummaryProvider:
    """
    Returns the summary of a leaflet, generating it at most once.
    """

    def __init__(self, client: OpenAI, store, model: str = OPENAI_MODEL):
        self.client = client
        self.store = store
        self.model = model

    def get_summary(self, record: LeafletRecord) -> SummaryResult:
        """
        Return the cached summary or generate, save and return a new one.

        Raises:
        - InternalError when there is no full text to summarize,
          when the generation call fails, when the answer cannot be
          parsed, or when saving the summary fails
        """

        # Fast path: summary already generated for this record
        if record.has_summary():
            logger.info(f"Summary already exists for {record.official_name!r}, returning cached copy")
            return SummaryResult(
                official_name=record.official_name,
                summary=normalize_cached_summary(record.summary),
                source="cached"
            )

        if not record.full_text or not record.full_text.strip():
            logger.error(f"Leaflet {record.key} ({record.official_name!r}) has no full text")
            raise InternalError(
                f'A bula completa para "{record.official_name}" não está disponível para resumo.'
            )

        logger.info(f"Generating summary for {record.official_name!r}...")

        # Step 1: One generation call with the fixed prompt
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": "Você resume bulas de medicamentos. Responda apenas com JSON válido."
                    },
                    {
                        "role": "user",
                        "content": build_summary_prompt(record.full_text)
                    }
                ],
                temperature=0.2
            )
            result_text = response.choices[0].message.content or ""

        except Exception as error:
            logger.error(f"Summary generation call failed: {error}")
            raise InternalError(
                "Erro ao gerar o resumo da bula. Tente novamente mais tarde."
            ) from error

        # Step 2: Parse and complete the JSON answer
        try:
            parsed = parse_summary_json(result_text)
        except SummaryParseError as error:
            logger.error(f"Failed to parse generated summary: {error}")
            logger.error(f"Response was: {result_text[:500]}")
            raise InternalError(
                "Erro ao processar o resumo da bula gerado. Formato inválido."
            ) from error

        summary = finalize_summary(parsed)

        # Step 3: Persist on the record so the next request hits the cache
        try:
            self.store.save_summary(record.key, summary)
        except Exception as error:
            logger.error(f"Failed to save summary on leaflet {record.key}: {error}")
            raise InternalError(
                "Ocorreu um erro inesperado ao salvar o resumo da bula."
            ) from error

        record.summary = summary
        logger.info(f"Summary generated and saved for {record.official_name!r}")

        return SummaryResult(
            official_name=record.official_name,
            summary=summary,
            source="generated"
        )
