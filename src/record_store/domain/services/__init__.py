"""Domain services - value comparison and the query pipeline."""

from record_store.domain.services.comparison import compare_values
from record_store.domain.services.query_pipeline import (
    OPERATORS,
    QueryPipeline,
    SortSpec,
    Stage,
)

__all__ = [
    "compare_values",
    "OPERATORS",
    "QueryPipeline",
    "SortSpec",
    "Stage",
]
