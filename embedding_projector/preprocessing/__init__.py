"""Dataset loading and dimensionality reduction for embedding projection."""

from .dimensionality_reduction import (  # noqa: F401
    AlgorithmOptions,
    AlgorithmParams,
    ProjectionExecutor,
    project_dataset,
    project_to_2d,
)
from .jsonl_loader import (  # noqa: F401
    DatasetFormatError,
    load_jsonl_dataset,
    parse_jsonl_lines,
)
