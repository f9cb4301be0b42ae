"""Work-unit enumeration and output path helpers."""

from pathlib import Path
from typing import Iterable, List, Optional

from transkit.core.config import TranslatorConfig
from transkit.core.errors import InputNotFoundError
from transkit.core.types import WorkUnit


def is_supported_file(path: Path, extensions: Optional[Iterable[str]]) -> bool:
    """Check whether a file's extension is in ``extensions`` (None allows all)."""
    if extensions is None:
        return True
    return path.suffix.lower() in {ext.lower() for ext in extensions}


def collect_files(
    directory: Path,
    extensions: Optional[Iterable[str]],
    *,
    recursive: bool = False,
    max_depth: int = 0,
    _depth: int = 0,
) -> List[Path]:
    """List supported files in a directory.

    Args:
        directory: Directory to scan
        extensions: Supported extensions, None for every file
        recursive: Whether to descend into subdirectories
        max_depth: Maximum depth of subdirectories to enter, 0 for unlimited

    Returns:
        Files in directory-listing order, sorted by name at each level
    """
    extensions = list(extensions) if extensions is not None else None
    files: List[Path] = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            if recursive and (max_depth == 0 or _depth < max_depth):
                files.extend(
                    collect_files(
                        entry,
                        extensions,
                        recursive=recursive,
                        max_depth=max_depth,
                        _depth=_depth + 1,
                    )
                )
        elif entry.is_file() and is_supported_file(entry, extensions):
            files.append(entry)
    return files


def enumerate_units(
    input_path: Path,
    output_path: Path,
    target_lang: str,
    config: TranslatorConfig,
    source_lang: Optional[str] = None,
) -> List[WorkUnit]:
    """Create work units for a file or a directory tree.

    A single file is written into ``output_path`` under its own name. Files of
    a directory keep their path relative to ``input_path``.

    Args:
        input_path: File or directory to translate
        output_path: Output directory
        target_lang: Target language code
        config: Translator configuration
        source_lang: Source language code, None to detect per file

    Returns:
        Work units in enumeration order

    Raises:
        InputNotFoundError: If the input path does not exist
    """
    if not input_path.exists():
        raise InputNotFoundError(
            "Input path does not exist",
            f"Check that the path is correct: {input_path}",
        )

    if input_path.is_dir():
        pairs = [
            (path, output_path / path.relative_to(input_path))
            for path in collect_files(
                input_path,
                config.supported_extensions,
                recursive=config.recursive,
                max_depth=config.max_recursive_depth,
            )
        ]
    else:
        pairs = [(input_path, output_path / input_path.name)]

    return [
        WorkUnit(
            source_path=source,
            target_path=target,
            source_lang=source_lang,
            target_lang=target_lang,
            skip_proper_nouns=config.skip_proper_nouns,
            skip_code_blocks=config.skip_code_blocks,
            size=source.stat().st_size,
            index=index,
        )
        for index, (source, target) in enumerate(pairs)
    ]


def unique_path(path: Path) -> Path:
    """Return ``path`` or the first free ``stem_N.ext`` variant of it."""
    candidate = path
    index = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}_{index}{path.suffix}")
        index += 1
    return candidate


def language_suffixed_path(path: Path, language: str) -> Path:
    """Insert a language code before the extension: ``a.md`` -> ``a.en.md``."""
    return path.with_name(f"{path.stem}.{language}{path.suffix}")
