from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

PathLike = Union[str, Path]


def _parse_names_block(lines: List[str]) -> Dict[int, str]:
    names: Dict[int, str] = {}
    in_names = False
    for line in lines:
        if line == "names:":
            in_names = True
            continue
        if not in_names or ":" not in line:
            continue
        key, value = (part.strip() for part in line.split(":", 1))
        if key.isdigit():
            names[int(key)] = value.strip("'\"")
    return names


def load_class_names(path: PathLike) -> List[str]:
    """
    Read a label table for a grid model.

    Two formats are accepted:
    - plain text, one class name per line (e.g. `voc.names`)
    - a metadata file with an `id: name` mapping under `names:`

    Missing ids in a mapping are filled with their index string so position
    always equals class index.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Label file not found: {p}")

    lines = [raw.strip() for raw in p.read_text(encoding="utf-8").splitlines()]
    lines = [line for line in lines if line and not line.startswith("#")]

    if "names:" in lines:
        mapping = _parse_names_block(lines)
        if not mapping:
            return []
        return [mapping.get(i, str(i)) for i in range(max(mapping) + 1)]

    return lines
