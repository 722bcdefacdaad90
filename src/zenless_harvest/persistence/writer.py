# ABOUTME: JSON output sink for validated records, failure lists and the icon manifest
# ABOUTME: Writes atomically through a temporary file so a crash never leaves half a dataset

import json
import os
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from zenless_harvest.core.models import AssetRecord, FailureEntry, HarvestRecord, RunSummary
from zenless_harvest.errors import FileSystemError
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

_records_adapter = TypeAdapter(list[HarvestRecord])
_assets_adapter = TypeAdapter(list[AssetRecord])
_failures_adapter = TypeAdapter(list[FailureEntry])


def _write_json(path: Path, data: Any) -> Path:
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise FileSystemError(f"cannot write {path}: {e}") from e
    return path


def write_records(path: Path, records: list[HarvestRecord]) -> Path:
    """Write records of one kind sorted by id with camelCase keys."""
    ordered = sorted(records, key=lambda record: record.id)
    data = _records_adapter.dump_python(ordered, mode="json", by_alias=True, exclude_none=True)
    logger.info("Writing records", path=str(path), count=len(ordered))
    return _write_json(path, data)


def write_assets(path: Path, assets: list[AssetRecord]) -> Path:
    data = _assets_adapter.dump_python(sorted(assets, key=lambda asset: asset.id), mode="json", by_alias=True)
    logger.info("Writing asset manifest", path=str(path), count=len(assets))
    return _write_json(path, data)


def write_failures(path: Path, failures: list[FailureEntry], summary: RunSummary) -> Path:
    data = {
        "summary": summary.model_dump(mode="json"),
        "failures": _failures_adapter.dump_python(failures, mode="json"),
    }
    logger.info("Writing failure report", path=str(path), count=len(failures))
    return _write_json(path, data)
