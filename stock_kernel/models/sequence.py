"""
Module: stock_kernel.models.sequence
Responsibility: Named counter rows behind reference numbering.  Each row is
    locked with SELECT ... FOR UPDATE by services/sequence_service.py while
    its value is incremented.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base


class SequenceCounter(Base):
    """Current value of one named sequence (e.g. ``reference:WH01/IN/2024``)."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
