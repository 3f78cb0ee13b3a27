from __future__ import annotations
import os

from fsl.fsl_datatypes import ScriptIOError
from fsl.fsl_serialize import detect_format


def script_format(path: str) -> str:
    """'yaml' for .yaml/.yml files, 'json' for everything else."""
    return detect_format(path)


def read_script(path: str | os.PathLike) -> bytes:
    """Reads a whole script file; the handle is closed before parsing starts."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        reason = e.strerror or str(e)
        raise ScriptIOError(f"cannot open {os.fspath(path)}: {reason}") from e
