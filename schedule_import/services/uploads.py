from __future__ import annotations

import shutil
import uuid
from pathlib import Path

__all__ = [
    "store_upload",
]


def store_upload(source: Path, upload_directory: Path) -> Path:
    """Copy an uploaded file into the upload directory under a unique name.

    The stored copy is what an ImportedFile's ``file_path`` points at, so
    deleting the import never touches the caller's original file.
    """
    upload_directory.mkdir(parents=True, exist_ok=True)
    target = upload_directory / f"{uuid.uuid4().hex}{source.suffix.lower()}"
    with source.open("rb") as src, target.open("wb") as dst:
        shutil.copyfileobj(src, dst)
    return target
