"""JSON file helpers shared by the settings, ledger and catalog cache."""

import logging
import tempfile
from pathlib import Path
from typing import Any

import orjson

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


def read_json(path: Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        OSError: If the file cannot be read
        orjson.JSONDecodeError: If the content is not valid JSON

    """
    with path.open("rb") as f:
        return orjson.loads(f.read())


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to ``path`` through a temporary file and atomic replace.

    Readers never observe a half-written file: the payload lands in a
    sibling temp file which then replaces the target.

    Args:
        path: Destination file
        data: JSON-serializable data

    Raises:
        OSError: If the directory cannot be created or the write fails

    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="wb",
        dir=path.parent,
        prefix=f".{path.stem}-",
        suffix=TMP_SUFFIX,
        delete=False,
    ) as tmp_file:
        tmp_file.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        tmp_file.flush()
        temp_path = Path(tmp_file.name)

    try:
        temp_path.replace(path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise
    logger.debug("Saved %s", path)
