from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from .models import Book

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_CATALOG_PATH = _DATA_DIR / "books.csv"

CATALOG_COLUMNS: list[str] = ["id", "title", "author", "genre", "pages", "rating"]

_catalogs: dict[Path, tuple[Book, ...]] = {}


def load_catalog(path: Path | str | None = None) -> tuple[Book, ...]:
    """Read and validate a book catalog CSV.

    Every row must parse into a :class:`Book` and ids must be unique.
    Raises ``ValueError`` describing the first problem found.
    """
    csv_path = Path(path) if path is not None else DEFAULT_CATALOG_PATH

    # Read everything as text and let the Book model do the typing
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)

    missing = [c for c in CATALOG_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{csv_path}: missing columns {', '.join(missing)}")
    if df.empty:
        raise ValueError(f"{csv_path}: catalog is empty")

    df = df[CATALOG_COLUMNS].apply(lambda col: col.str.strip())

    books: list[Book] = []
    # Line 1 is the header
    for line_no, record in enumerate(df.to_dict(orient="records"), start=2):
        try:
            books.append(Book.model_validate(record))
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(p) for p in error["loc"])
            raise ValueError(
                f"{csv_path}: line {line_no}: invalid {field}: {error['msg']}"
            ) from exc

    duplicates = sorted(i for i, n in Counter(b.id for b in books).items() if n > 1)
    if duplicates:
        raise ValueError(f"{csv_path}: duplicate book ids {duplicates}")

    logger.info("Loaded %d books from %s", len(books), csv_path)
    return tuple(books)


def get_catalog(path: Path | str | None = None) -> tuple[Book, ...]:
    """Return the catalog at *path*, loading it on first call."""
    key = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    if key not in _catalogs:
        _catalogs[key] = load_catalog(key)
    return _catalogs[key]
