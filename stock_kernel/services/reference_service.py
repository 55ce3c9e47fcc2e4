"""
ReferenceService -- human-readable document references.

References read ``PREFIX/YYYY/NNNN``: the kind's prefix (``WH01/IN``,
``WH01/OUT``, ``TRANS``, ``ADJ``), the year of creation taken from the
injected clock, and a 1-based number, zero padded to four digits, that
restarts every year per prefix.  Numbers come from a locked counter row
named ``reference:PREFIX/YYYY`` (see SequenceService), so they are unique
under concurrent creation and never reuse a committed value.
"""

from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.logging_config import get_logger
from stock_kernel.services.sequence_service import SequenceService

logger = get_logger("services.reference")


def format_reference(prefix: str, year: int, number: int) -> str:
    """``format_reference("ADJ", 2024, 7) == "ADJ/2024/0007"``; wider numbers keep every digit."""
    return f"{prefix}/{year}/{number:04d}"


def counter_name(prefix: str, year: int) -> str:
    return f"reference:{prefix}/{year}"


class ReferenceService:
    def __init__(self, session: Session, clock: Clock):
        self._sequences = SequenceService(session)
        self._clock = clock

    def next_reference(self, prefix: str) -> str:
        """Allocate the next reference for ``prefix`` in the current year."""
        year = self._clock.current_year()
        number = self._sequences.next_value(counter_name(prefix, year))
        reference = format_reference(prefix, year, number)
        logger.debug(
            "reference_allocated",
            extra={"prefix": prefix, "year": year, "reference": reference},
        )
        return reference
