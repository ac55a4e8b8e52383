"""Professional benchmark percentiles for athlete force-plate testing."""

from .builder import ReferenceBuilder
from .comparison import ComparisonEngine, rank
from .store import InMemoryReferenceStore

__all__ = ["ComparisonEngine", "InMemoryReferenceStore", "ReferenceBuilder", "rank"]
