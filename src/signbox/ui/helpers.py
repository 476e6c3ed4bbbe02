"""
Common CLI helper functions for signbox.
"""

from __future__ import annotations

import getpass
import os
import sys
import tempfile
from pathlib import Path

from ..network.request import SignatureFormat

__all__ = [
    "atomic_write",
    "default_output_path",
    "format_size_kb",
    "guess_format",
    "mask_secret",
    "prompt_secret",
    "safe_read_file",
]

_BYTES_PER_KB = 1024

_FORMAT_BY_SUFFIX = {
    ".pdf": SignatureFormat.PADES,
    ".xml": SignatureFormat.XADES,
}


def format_size_kb(size_bytes: int) -> str:
    """Format a byte count as a human-readable KB string (e.g. '123.4 KB')."""
    return f"{size_bytes / _BYTES_PER_KB:.1f} KB"


def guess_format(path: Path) -> SignatureFormat:
    """PAdES for .pdf, XAdES for .xml, CAdES for everything else."""
    return _FORMAT_BY_SUFFIX.get(path.suffix.lower(), SignatureFormat.CADES)


def default_output_path(path: Path, format: SignatureFormat) -> Path:
    """Output path for a signed document.

    PAdES/XAdES keep the original extension ('<stem>_signed.pdf');
    CAdES envelopes get '.p7m' appended ('<name>.p7m').
    """
    if format is SignatureFormat.CADES:
        return path.with_name(f"{path.name}.p7m")
    return path.with_name(f"{path.stem}_signed{path.suffix}")


def mask_secret(secret: str) -> str:
    """Show only the last 4 characters of a secret."""
    if not secret:
        return "(not set)"
    if len(secret) <= 4:
        return "****"
    return f"****{secret[-4:]}"


def prompt_secret(prompt: str) -> str:
    """Prompt for a secret without echo.

    Raises:
        SystemExit: If the user cancels (Ctrl-C, Ctrl-D).
    """
    try:
        return getpass.getpass(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        sys.exit(1)


def safe_read_file(path: Path, kind: str = "file") -> bytes | None:
    """
    Read a file with uniform error handling.

    Returns:
        File contents, or None if the file doesn't exist or can't be read.
    """
    if not path.exists():
        print(f"Error: {kind} not found: {path}", file=sys.stderr)
        return None

    try:
        return path.read_bytes()
    except OSError as e:
        print(f"Error reading {kind}: {e}", file=sys.stderr)
        return None


def atomic_write(path: Path, data: bytes) -> None:
    """Write data to a file atomically using temp file + rename."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        os.write(fd, data)
        os.fsync(fd)
        os.close(fd)
        fd = -1
        tmp.replace(path)
    except Exception:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise
