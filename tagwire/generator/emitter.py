"""Writes one generated module per schema file."""

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from . import cpp, python
from .parser import parse
from .types import Schema

logger = logging.getLogger(__name__)

LANGUAGES: dict[str, tuple[Callable[..., str], str]] = {
    "cpp": (cpp.render, cpp.OUTPUT_SUFFIX),
    "python": (python.render, python.OUTPUT_SUFFIX),
}


def output_path(
    input_path: str | os.PathLike[str], output_dir: str | os.PathLike[str], language: str
) -> Path:
    """Where the artifact for a schema file is written."""
    _, suffix = LANGUAGES[language]
    return Path(output_dir) / (Path(input_path).stem + suffix)


def render(schema: Schema, stem: str, language: str, **options: Any) -> str:
    """Render a loaded schema for one target language."""
    if language not in LANGUAGES:
        raise ValueError(f"Unknown language: {language}")
    render_fn, _ = LANGUAGES[language]
    return render_fn(schema, stem, **options)


def write_atomic(path: Path, content: str) -> None:
    """Replace path with content, leaving the old file alone on failure."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise


def generate(
    input_path: str | os.PathLike[str],
    output_dir: str | os.PathLike[str],
    language: str,
    **options: Any,
) -> Path:
    """Load a schema file, generate code for it and write the artifact.

    Args:
        input_path: Schema source file.
        output_dir: Directory receiving `<stem><suffix>`.
        language: Target language, "cpp" or "python".
        options: Extra keyword arguments for the target's render function.

    Returns:
        Path of the written artifact.
    """
    if language not in LANGUAGES:
        raise ValueError(f"Unknown language: {language}")

    with open(input_path, encoding="utf-8") as f:
        text = f.read()

    schema = parse(text)
    stem = Path(input_path).stem
    content = render(schema, stem, language, **options)

    target = output_path(input_path, output_dir, language)
    target.parent.mkdir(parents=True, exist_ok=True)
    write_atomic(target, content)

    logger.info("Wrote %s (%d messages)", target, len(schema.messages))
    return target
