"""Write completed transcript payloads to disk.

WHY: A completed job's payload is the only output of the transcription
flow. It is written once, named after the job, so a later question run
can refer back to the same identifier.

HOW: json.dumps with indent=2, then Path.write_text. Any OSError or
serialization failure becomes StorageError with the path attached.

RULES:
- File name is <job_id>.json in the target directory (default: CWD)
- Existing files are overwritten silently; no atomic rename
- Payload is written verbatim, key order as received
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from assembly_cli.errors import StorageError

logger = logging.getLogger(__name__)


def transcript_path(job_id: str, directory: Optional[Union[str, Path]] = None) -> Path:
    """Return the path the payload for job_id is written to."""
    base = Path(directory) if directory is not None else Path.cwd()
    return base / "{}.json".format(job_id)


def write_transcript(
    job_id: str,
    payload: Any,
    directory: Optional[Union[str, Path]] = None,
) -> Path:
    """Serialize a completed payload to <directory>/<job_id>.json.

    Args:
        job_id: The transcription job identifier.
        payload: The full JSON payload returned by the status endpoint.
        directory: Target directory; the current working directory if None.

    Returns:
        The path that was written.
    """
    path = transcript_path(job_id, directory)
    try:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StorageError(path, "payload is not JSON serializable: {}".format(e)) from e

    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise StorageError(path, str(e)) from e

    logger.info("Wrote transcript %s to %s", job_id, path)
    return path


def read_transcript(path: Union[str, Path]) -> Any:
    """Load a payload previously written by write_transcript."""
    return json.loads(Path(path).read_text(encoding="utf-8"))
