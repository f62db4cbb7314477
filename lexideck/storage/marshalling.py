"""
Conversion between Card models and the persisted JSON snapshot format.

A snapshot is a JSON array of camelCase card records, in deck order.
"""

import json
import logging
from typing import Any, List, Sequence

from pydantic import ValidationError

from ..exceptions import MarshallingError
from ..models import Card

logger = logging.getLogger(__name__)


def cards_to_json(cards: Sequence[Card]) -> str:
    """Serialise cards, in order, to a JSON array string."""
    return json.dumps([card.to_record() for card in cards], ensure_ascii=False)


def record_to_card(record: Any) -> Card:
    """
    Create a Card from one persisted record.

    Raises:
        MarshallingError: If the record is not an object or fails validation.
    """
    if not isinstance(record, dict):
        raise MarshallingError(
            f"Card record must be an object, got {type(record).__name__}."
        )
    try:
        return Card.model_validate(record)
    except ValidationError as e:
        raise MarshallingError(
            f"Invalid card record: {e}", original_exception=e
        ) from e


def cards_from_json(payload: str) -> List[Card]:
    """
    Parse a snapshot into cards.

    Records that fail validation are skipped (and logged); a payload that is
    not a JSON array is rejected as a whole.

    Raises:
        MarshallingError: If the payload is not valid JSON or not an array.
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError, RecursionError) as e:
        raise MarshallingError(
            f"Snapshot is not valid JSON: {e}", original_exception=e
        ) from e
    if not isinstance(data, list):
        raise MarshallingError(
            f"Snapshot must be a JSON array, got {type(data).__name__}."
        )

    cards: List[Card] = []
    for index, record in enumerate(data):
        try:
            cards.append(record_to_card(record))
        except MarshallingError as e:
            logger.warning(f"Skipping card record {index}: {e}")
    return cards
