from __future__ import annotations

import os
import tempfile
from pathlib import Path

from apigen.domain.errors import EmitError


def write_atomic(out_path: Path, text: str) -> Path:
    """
    Write `text` to `out_path` all-or-nothing.

    The text goes to a temp file beside the destination, then os.replace()s it.
    On failure the temp file is removed and an existing destination is untouched.
    """
    out_path = Path(out_path).expanduser()
    tmp_name = None
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{out_path.name}.", suffix=".tmp", dir=str(out_path.parent)
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, out_path)
        tmp_name = None
    except OSError as e:
        raise EmitError(f"cannot write output: {e}", str(out_path)) from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
    return out_path
