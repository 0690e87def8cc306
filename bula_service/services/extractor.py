"""
extractor.py

Identifies the medicine name printed on a package.

The OCR text of a medicine box is noisy: prices, batch numbers,
expiry dates, dosages. This service asks the language model for
the one medicine name in it, or for an explicit sentinel when
there is none.

The prompt is fixed inline. Its wording and examples are part of
the behaviour of this service, so change them with care.
"""

from openai import OpenAI
import logging

from bula_service.config import OPENAI_MODEL
from bula_service.errors import InternalError, NotFoundError

# Setup logging
logger = logging.getLogger(__name__)

# Returned by the model when no medicine name can be identified
UNIDENTIFIED_SENTINEL = "NÃO_IDENTIFICADO"

# Anything shorter is not a usable medicine name
MIN_NAME_LENGTH = 3

NAME_PROMPT_TEMPLATE = """
Dado o seguinte texto extraído da caixa de um medicamento, identifique e retorne apenas o nome oficial do medicamento.
Se houver nomes de marca e nomes genéricos, prefira o nome genérico se for claramente identificável.
Retorne apenas o nome do medicamento, sem explicações ou frases adicionais.
Se não conseguir identificar um nome de medicamento claro, retorne "{sentinel}".

Exemplos:
Texto: "PARACETAMOL 500mg Comprimidos"
Nome: Paracetamol

Texto: "TYLENOL 750mg"
Nome: Tylenol

Texto: "DIPIRONA SÓDICA 500 MG"
Nome: Dipirona Sódica

Texto: "R$ 19,99 VENCIMENTO 12/25"
Nome: {sentinel}

Texto da caixa:
{ocr_text}
"""


def build_name_prompt(ocr_text: str) -> str:
    return NAME_PROMPT_TEMPLATE.format(sentinel=UNIDENTIFIED_SENTINEL, ocr_text=ocr_text)


class MedicineNameExtractor:
    """
    Extracts a single medicine name from OCR text.

    One generation request per call, no retries.
    """

    def __init__(self, client: OpenAI, model: str = OPENAI_MODEL):
        self.client = client
        self.model = model

    def extract_name(self, ocr_text: str) -> str:
        """
        Return the medicine name found in the OCR text.

        What happens here:
        1. Build the fixed prompt with the OCR text
        2. Send it to the model
        3. Trim the answer and check it against the sentinel

        Raises:
        - NotFoundError when the model could not identify a name
        - InternalError when the generation call failed
        """

        logger.info("Extracting medicine name from OCR text...")

        prompt = build_name_prompt(ocr_text)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": prompt
                    }
                ],
                temperature=0
            )
            extracted_name = (response.choices[0].message.content or "").strip()
            # Models sometimes echo the answer in quotes
            extracted_name = extracted_name.strip("\"'“”").strip()

        except Exception as error:
            logger.error(f"Name extraction call failed: {error}")
            raise InternalError(
                "Erro interno ao identificar o medicamento. Tente novamente mais tarde."
            ) from error

        if extracted_name == UNIDENTIFIED_SENTINEL or len(extracted_name) < MIN_NAME_LENGTH:
            logger.info(f"Model could not identify a medicine name (answer: {extracted_name!r})")
            raise NotFoundError(
                "Não foi possível identificar o nome do medicamento a partir da imagem. "
                "Tente uma foto mais clara ou com mais detalhes."
            )

        logger.info(f"Extracted medicine name: {extracted_name}")
        return extracted_name
