import sys
from pathlib import Path

import pytest


def _add_src_to_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_add_src_to_path()


def _ctags_row(
    name: str,
    filename: str,
    code: str | None,
    **fields: str | int,
) -> str:
    """Build one ctags row in the layout the parser consumes.

    ``class_`` is accepted for the ``class`` field.
    """
    parts = [name, filename]
    if code is not None:
        parts.append(f'/^{code}$/;"')
    for key, value in fields.items():
        parts.append(f"{key.rstrip('_')}:{value}")
    return "\t".join(parts)


@pytest.fixture
def ctags_row():
    """Return the ctags row builder."""
    return _ctags_row

