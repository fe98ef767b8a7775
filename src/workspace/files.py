# src/workspace/files.py — v1
"""Input/output folder handling and the temporary work tree.

``begin`` resolves the input and output folders (guessing them from the
project root when unset), then copies the input into a fresh temp folder
that every phase works on. ``end`` replaces the output folder with the
finished work tree. ``clean`` only removes the work tree and is what
callers use after a failure.
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from webappbuilder.config.models import GlobalConfig
from webappbuilder.core.errors import ConfigurationError, InputNotFoundError

logger = logging.getLogger(__name__)

WORK_DIR_PREFIX = "webappbuilder-"
DEFAULT_OUTPUT_NAME = "public"

_OUTPUT_TYPE_MAP = {
    "input": "output",
    "in": "out",
    "source": "public",
    "src": "pub",
}


@dataclass(frozen=True)
class InputFolderMatch:
    name: str
    type: str
    brand: str | None = None
    delimiter: str = ""


def _input_folder_re(alias: str) -> re.Pattern[str]:
    return re.compile(
        rf"^.?(?:(?P<brand>{re.escape(alias)}|easy.?webapp))?"
        r"(?P<delimiter>.?)(?P<type>input|in|source|src)$",
        re.IGNORECASE,
    )


def match_input_folder_name(name: str, alias: str) -> InputFolderMatch | None:
    """Split an input-like folder name into brand, delimiter and type."""
    match = _input_folder_re(alias).match(name)
    if match is None:
        return None
    return InputFolderMatch(
        name=name,
        type=match.group("type"),
        brand=match.group("brand"),
        delimiter=match.group("delimiter") or "",
    )


def find_input_folder_candidates(root: Path, alias: str) -> list[InputFolderMatch]:
    if not root.is_dir():
        return []
    candidates = []
    for child in sorted(root.iterdir()):
        if child.is_dir():
            match = match_input_folder_name(child.name, alias)
            if match is not None:
                candidates.append(match)
    return candidates


def _content_score(folder: Path) -> int:
    score = 0
    if (folder / "index.html").is_file():
        score += 1
    if not any(folder.rglob("*.htm*")):
        score -= 1
    if (folder / "manifest.json").is_file():
        score += 1
    return score


def guess_input_folder(root: Path, alias: str) -> str:
    """Pick the most plausible input folder under root.

    Raises:
        InputNotFoundError: If no subfolder looks like an input folder.
    """
    matches = find_input_folder_candidates(root, alias)
    if not matches:
        raise InputNotFoundError(
            f"No input folder set and none could be found in {root}"
        )

    if len(matches) > 1 and any(m.brand for m in matches):
        matches = [m for m in matches if m.brand]

    if len(matches) > 1:
        scores = {m.name: _content_score(root / m.name) for m in matches}
        best = max(scores.values())
        matches = [m for m in matches if scores[m.name] == best]

    if len(matches) > 1:
        logger.warning(
            "Not sure which folder to use as input, using %r from: %s",
            matches[0].name, ", ".join(m.name for m in matches),
        )
    else:
        logger.info("Using %r as input folder", matches[0].name)
    return matches[0].name


def _match_case(template: str, word: str) -> str:
    if template.isupper():
        return word.upper()
    if template[:1].isupper():
        return word.capitalize()
    return word


def decide_output_folder_name(input_name: str, alias: str) -> str:
    """``src`` -> ``pub``, ``Source`` -> ``Public``, ``ewab-input`` -> ``ewab-output``."""
    match = match_input_folder_name(input_name, alias)
    if match is None:
        return DEFAULT_OUTPUT_NAME
    name = _match_case(match.type, _OUTPUT_TYPE_MAP[match.type.lower()])
    if match.brand:
        name = f"{match.brand}{match.delimiter}{name}"
    return name


class Workspace:
    """Owns the input, output and temporary work folders of one run."""

    def __init__(self, config: GlobalConfig) -> None:
        self._config = config
        self._root = config.root_path
        self.input_path: Path | None = None
        self.output_path: Path | None = None
        self.work_path: Path | None = None

    def begin(self) -> Path:
        """Resolve folders and copy the input into a fresh work tree.

        Raises:
            InputNotFoundError: If the input folder cannot be found.
        """
        alias = self._config.alias
        input_name = self._config.input_path or guess_input_folder(self._root, alias)
        input_path = (self._root / input_name).resolve()
        if not input_path.is_dir():
            raise InputNotFoundError(f"Input folder {input_path} does not exist")

        if self._config.output_path:
            output_path = (self._root / self._config.output_path).resolve()
        else:
            output_path = (self._root / decide_output_folder_name(input_name, alias)).resolve()
            self._protect_existing_output(output_path, input_path, input_name)
        if output_path == input_path:
            raise ConfigurationError("Input and output folders must be different")

        work_path = Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX))
        logger.info("Copying %s to work folder %s", input_path, work_path)
        try:
            shutil.copytree(input_path, work_path, dirs_exist_ok=True)
            (work_path / alias).mkdir(exist_ok=True)
        except BaseException:
            shutil.rmtree(work_path, ignore_errors=True)
            raise

        self.input_path = input_path
        self.output_path = output_path
        self.work_path = work_path
        return work_path

    def end(self) -> Path:
        """Replace the output folder with the work tree and remove the latter."""
        if self.work_path is None or self.output_path is None:
            raise RuntimeError("Workspace.end() called before begin()")
        logger.info("Copying finished files to %s", self.output_path)
        if self.output_path.exists():
            shutil.rmtree(self.output_path)
        shutil.copytree(self.work_path, self.output_path)
        self.clean()
        return self.output_path

    def clean(self) -> None:
        """Remove the temporary work tree, if any."""
        if self.work_path is not None:
            logger.debug("Removing work folder %s", self.work_path)
            shutil.rmtree(self.work_path, ignore_errors=True)
            self.work_path = None

    def _protect_existing_output(self, candidate: Path, input_path: Path, input_name: str) -> None:
        """Back up whatever sits at the guessed output path unless it looks like old output."""
        alias = self._config.alias
        backup = self._root / f"{alias}-backup-{candidate.name}"

        if candidate.is_file():
            logger.warning("A file exists at %s, backing it up as %s", candidate, backup.name)
            candidate.rename(backup)
            return
        if not candidate.is_dir() or not any(candidate.iterdir()):
            return

        match = match_input_folder_name(input_name, alias)
        looks_generated = (
            (match is not None and match.brand is not None)
            or (candidate / alias).is_dir()
            or ((input_path / "index.html").is_file() and (candidate / "index.html").is_file())
        )
        if looks_generated:
            logger.debug("Existing %s looks like earlier output, overwriting", candidate)
            return
        logger.warning(
            "Existing folder %s may hold unrelated files, backing it up as %s",
            candidate, backup.name,
        )
        if backup.is_dir():
            shutil.rmtree(backup)
        elif backup.exists():
            backup.unlink()
        candidate.rename(backup)
