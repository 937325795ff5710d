from __future__ import annotations

from pathlib import Path
from typing import List, Union


def load_labels(labels_path: Union[str, Path]) -> List[str]:
    """
    Load class labels from a plain text file, one label per line.

    Line order is the class index, e.g. `VOC_pascal_classes.txt`:

        aeroplane
        bicycle
        ...

    Trailing blank lines are dropped; a file with no labels is rejected.
    """

    path = Path(labels_path)
    if not path.exists():
        raise FileNotFoundError(f"Labels file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        labels = [raw.rstrip("\r\n") for raw in f]

    while labels and not labels[-1].strip():
        labels.pop()

    if not labels:
        raise ValueError(f"Labels file is empty: {path}")
    return labels
