"""
resolver.py

Finds the stored leaflet for a medicine name.

Lookup strategies are tried in order until one returns a record:
1. exact match on the official name (case-sensitive)
2. lowercase match against the alternate names

Each strategy is a plain function (store, name) -> record or None,
so adding a new one is a matter of appending it to the list.
"""

import logging
from typing import Callable, Optional, Sequence

from bula_service.errors import InternalError, NotFoundError
from bula_service.schemas.bula import LeafletRecord

# Setup logging
logger = logging.getLogger(__name__)

LookupStrategy = Callable[[object, str], Optional[LeafletRecord]]


def exact_name_lookup(store, name: str) -> Optional[LeafletRecord]:
    return store.find_by_official_name(name.strip())


def alternate_name_lookup(store, name: str) -> Optional[LeafletRecord]:
    # Alternate names are stored lowercase
    return store.find_by_alternate_name(name.strip().lower())


DEFAULT_STRATEGIES = (exact_name_lookup, alternate_name_lookup)


class LeafletResolver:
    """
    Resolves a candidate medicine name to a LeafletRecord.

    No fuzzy matching and no ranking: the first record returned
    by the first successful strategy wins.
    """

    def __init__(self, store, strategies: Sequence[LookupStrategy] = DEFAULT_STRATEGIES):
        self.store = store
        self.strategies = list(strategies)

    def resolve(self, name: str) -> LeafletRecord:
        """
        Raises:
        - NotFoundError when no strategy finds a record
          (the message contains the searched name)
        - InternalError when the store query fails
        """

        logger.info(f"Looking up leaflet for {name!r}...")

        for strategy in self.strategies:
            strategy_name = getattr(strategy, "__name__", repr(strategy))
            try:
                record = strategy(self.store, name)
            except Exception as error:
                logger.error(f"Leaflet lookup ({strategy_name}) failed: {error}")
                raise InternalError(
                    "Ocorreu um erro inesperado ao buscar a bula. Tente novamente mais tarde."
                ) from error

            if record is not None:
                logger.info(f"Leaflet {record.key} found with {strategy_name}")
                return record

        logger.info(f"No leaflet found for {name!r}")
        raise NotFoundError(
            f'Bula para "{name}" não encontrada no banco de dados. '
            "Cadastre o medicamento ou verifique a imagem."
        )
