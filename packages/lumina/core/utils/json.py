"""Read and write UTF-8 JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def write_json(path: str | Path, obj: Any) -> None:
    """Write ``obj`` as indented JSON, creating parent directories.

    Values JSON cannot represent (paths, enums) are written as ``str(value)``.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False, default=str), encoding="utf-8")


def read_json(path: str | Path) -> Any:
    """Parse a JSON file of any top-level type.

    Raises:
        ValueError: The file is not valid UTF-8 JSON.
    """
    return json.loads(Path(path).read_text(encoding="utf-8"))
