from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd


def write_records_to_csv(
    path: Path,
    rows: Iterable[dict],
    *,
    columns: Sequence[str] | None = None,
    float_format: str | None = None,
) -> Path:
    df = pd.DataFrame(list(rows), columns=columns)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, float_format=float_format)
    return path


def write_lines(path: Path, lines: Iterable[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
