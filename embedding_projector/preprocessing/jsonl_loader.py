"""JSONL ingestion for embedding datasets.

Each non-blank line holds one JSON object::

    {"embedding": [0.1, -0.3, ...], "title": "Doc title", "text": "Body"}

Lines are numbered from one, counting only non-blank lines, and every error
names the offending line.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Iterable, List, Union

from ..types import Dataset, Document
from ..utils.logging.logging_manager import get_logger

logger = get_logger("embedding_projector.loader")


class DatasetFormatError(ValueError):
    """Raised when a JSONL record cannot be turned into a dataset row."""

    def __init__(self, message: str, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_record(line: str, line_number: int) -> tuple[List[float], Document]:
    try:
        record = json.loads(line)
    except json.JSONDecodeError as exc:
        raise DatasetFormatError(
            f"Invalid JSON at line {line_number}: {exc.msg}", line_number
        ) from exc

    if not isinstance(record, dict):
        raise DatasetFormatError(
            f"Invalid JSONL format at line {line_number}: expected an object", line_number
        )

    embedding = record.get("embedding")
    if not isinstance(embedding, list) or not all(_is_number(v) for v in embedding):
        raise DatasetFormatError(
            f"Invalid JSONL format at line {line_number}: missing or invalid embedding array",
            line_number,
        )
    try:
        vector = [float(v) for v in embedding]
    except OverflowError as exc:
        raise DatasetFormatError(
            f"Invalid JSONL format at line {line_number}: embedding value out of range",
            line_number,
        ) from exc
    if not all(math.isfinite(v) for v in vector):
        raise DatasetFormatError(
            f"Invalid JSONL format at line {line_number}: embedding contains non-finite values",
            line_number,
        )
    if not isinstance(record.get("text"), str):
        raise DatasetFormatError(
            f"Invalid JSONL format at line {line_number}: missing or invalid text field",
            line_number,
        )
    if not isinstance(record.get("title"), str):
        raise DatasetFormatError(
            f"Invalid JSONL format at line {line_number}: missing or invalid title field",
            line_number,
        )

    return vector, Document(title=record["title"], text=record["text"])


def parse_jsonl_lines(lines: Iterable[str]) -> Dataset:
    """Build a :class:`Dataset` from JSONL lines.

    Raises:
        DatasetFormatError: On malformed JSON, missing fields, non-finite
            coordinates, or an embedding whose width differs from the first
            record's.
    """

    vectors: List[List[float]] = []
    documents: List[Document] = []
    width = None
    line_number = 0

    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            continue
        line_number += 1

        vector, document = _parse_record(line, line_number)
        if width is None:
            width = len(vector)
        elif len(vector) != width:
            raise DatasetFormatError(
                f"Invalid JSONL format at line {line_number}: embedding has "
                f"{len(vector)} dimensions, expected {width}",
                line_number,
            )
        vectors.append(vector)
        documents.append(document)

    if not vectors:
        return Dataset.from_records([], [])
    return Dataset.from_records(vectors, documents)


def load_jsonl_dataset(path: Union[str, Path]) -> Dataset:
    """Read a JSONL file into a :class:`Dataset`."""

    path = Path(path)
    logger.info("Loading embeddings from %s", path)
    with open(path, "r", encoding="utf-8") as handle:
        dataset = parse_jsonl_lines(handle)

    width = dataset.vectors.shape[1] if len(dataset) else 0
    logger.info("Loaded %d documents with %d dimensions", len(dataset), width)
    return dataset


__all__ = ["DatasetFormatError", "load_jsonl_dataset", "parse_jsonl_lines"]
