"""File I/O for recorded motion‑intensity series.

Supports CSV/TSV text files and NumPy binary (.npy) arrays.  Each loader
returns a standardised dictionary with ``samples``, ``n_samples``,
``file_path`` and ``format``.  Sampling rate is not stored in these files
and must be supplied by the caller at analysis time.
"""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np


# ---------------------------------------------------------------------------
# CSV loader
# ---------------------------------------------------------------------------

def _resolve_column(column: int | str, header: list[str]) -> int:
    if isinstance(column, int):
        return column
    names = [h.strip() for h in header]
    if column not in names:
        raise ValueError(f"Column '{column}' not found in header: {header}")
    return names.index(column)


def load_csv(
    file_path: str,
    column: int | str = 0,
    delimiter: str = ",",
    skip_header: int = 1,
) -> dict:
    """Load an intensity series from a CSV / TSV file.

    Rows whose sample cell is missing or not numeric are ignored.  A column
    name is looked up in the last header row.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the column cannot be resolved or no numeric rows remain.
    """
    path = Path(file_path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    values: list[float] = []
    with open(path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.reader(fh, delimiter=delimiter)
        header: list[str] = []
        for _ in range(skip_header):
            header = next(reader, [])
        col_idx = _resolve_column(column, header)
        for row in reader:
            try:
                values.append(float(row[col_idx]))
            except (IndexError, ValueError):
                continue

    if not values:
        raise ValueError(f"No numeric data rows found in {path}")

    return {
        "samples": values,
        "n_samples": len(values),
        "file_path": str(path),
        "format": "csv",
    }


# ---------------------------------------------------------------------------
# NumPy loader
# ---------------------------------------------------------------------------

def load_npy(file_path: str, column: int = 0) -> dict:
    """Load an intensity series from a NumPy ``.npy`` binary file.

    Args:
        file_path: Path to the ``.npy`` file.
        column: If the array is 2‑D, select this column.

    Returns:
        Standardised samples dict.
    """
    path = Path(file_path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    arr = np.load(str(path), allow_pickle=False)

    if arr.ndim == 2:
        if column >= arr.shape[1]:
            raise ValueError(f"Column {column} out of range (array has {arr.shape[1]} cols)")
        samples = arr[:, column].astype(np.float64)
    elif arr.ndim == 1:
        samples = arr.astype(np.float64)
    else:
        raise ValueError(f"Expected 1‑D or 2‑D array, got {arr.ndim}‑D")

    return {
        "samples": samples.tolist(),
        "n_samples": len(samples),
        "file_path": str(path),
        "format": "npy",
    }


# ---------------------------------------------------------------------------
# Unified loader (auto‑detect by extension)
# ---------------------------------------------------------------------------

SUPPORTED_EXTENSIONS = {".csv", ".tsv", ".txt", ".npy"}


def load_samples(
    file_path: str,
    column: int | str = 0,
    delimiter: str | None = None,
    skip_header: int = 1,
) -> dict:
    """Auto‑detect file format and load an intensity series.

    Args:
        file_path: Path to the samples file.
        column: Column index or CSV header name holding the samples.
        delimiter: CSV delimiter.  ``None`` → ``,`` for .csv, ``\\t`` for
            .tsv/.txt.
        skip_header: CSV header rows to skip.

    Returns:
        Standardised samples dict.
    """
    path = Path(file_path).resolve()
    ext = path.suffix.lower()

    if ext in (".csv", ".tsv", ".txt"):
        if delimiter is None:
            delimiter = "\t" if ext in (".tsv", ".txt") else ","
        return load_csv(
            str(path),
            column=column,
            delimiter=delimiter,
            skip_header=skip_header,
        )
    elif ext == ".npy":
        if not isinstance(column, int):
            raise ValueError("column must be an integer index for .npy files")
        return load_npy(str(path), column=column)
    else:
        raise ValueError(
            f"Unsupported file format: '{ext}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
