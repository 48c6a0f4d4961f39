"""Package version, taken from the installed distribution metadata."""
from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _read_version() -> str:
    try:
        return version("wikicontent")
    except PackageNotFoundError:
        pass
    # Source checkout without `pip install -e .`: parse pyproject.toml instead.
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    if not pyproject.is_file():
        return "0.0.0"
    match = re.search(r'^version\s*=\s*"([^"]+)"', pyproject.read_text(encoding="utf-8"), re.MULTILINE)
    return match.group(1) if match else "0.0.0"


__version__: str = _read_version()
