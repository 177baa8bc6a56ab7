"""Share code generation and storage path derivation."""

from __future__ import annotations

import re
import secrets
from pathlib import PurePosixPath

from sqlalchemy.orm import Session

from app.models.shared_file import SharedFile

# Lowercase, URL-safe, without look-alikes (0/o, 1/l/i)
SHARE_CODE_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,16}$")

# Upper bound on draws against the table before giving the code back to the caller
_MAX_PRECHECK_DRAWS = 10


def generate_share_code(length: int = 6) -> str:
    return "".join(secrets.choice(SHARE_CODE_ALPHABET) for _ in range(length))


def normalize_share_code(raw: str | None) -> str:
    """Lowercase and trim a user-entered code; lookups are case-insensitive."""
    return (raw or "").strip().lower()


def issue_share_code(db: Session, length: int = 6) -> str:
    """Return a code that is not in use right now.

    Another request may still claim the same code before our insert lands, so
    the unique constraint on ``shared_files.share_code`` stays the real guard.
    """
    code = generate_share_code(length)
    for _ in range(_MAX_PRECHECK_DRAWS - 1):
        taken = db.query(SharedFile.id).filter(SharedFile.share_code == code).first()
        if taken is None:
            break
        code = generate_share_code(length)
    return code


def file_extension(filename: str) -> str:
    ext = PurePosixPath(filename.replace("\\", "/")).suffix.lower()
    if _EXTENSION_RE.match(ext):
        return ext
    return ""


def build_storage_path(share_code: str, filename: str, prefix: str = "shares") -> str:
    name = f"{share_code}{file_extension(filename)}"
    prefix = prefix.strip("/")
    if not prefix:
        return name
    return f"{prefix}/{name}"


def build_share_link(base_url: str, share_code: str) -> str:
    return f"{base_url.rstrip('/')}/?code={share_code}"
