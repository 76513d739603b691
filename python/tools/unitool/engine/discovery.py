#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Locating the Unity editor binary.
"""

from __future__ import annotations

import os
import platform
import re
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

from loguru import logger

from ..core.errors import ErrorContext, LaunchError

# Paths of the editor binary relative to a version directory, per platform.
EDITOR_BINARIES = {
    "Linux": ("Editor/Unity",),
    "Darwin": ("Unity.app/Contents/MacOS/Unity",),
    "Windows": ("Editor/Unity.exe",),
}

DEFAULT_INSTALL_ROOTS = {
    "Linux": ("/opt/Unity", "~/Unity/Hub/Editor"),
    "Darwin": ("/Applications/Unity/Hub/Editor", "/Applications/Unity"),
    "Windows": ("C:/Program Files/Unity/Hub/Editor", "C:/Program Files/Unity"),
}


def version_key(name: str) -> Tuple:
    """
    Natural sort key for editor version directory names.

    ``2022.3.9f1`` sorts before ``2022.3.10f1``; non-numeric chunks compare
    as text after numbers.
    """
    key = []
    for chunk in re.split(r"(\d+)", name):
        if not chunk:
            continue
        key.append((0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk))
    return tuple(key)


class EngineLocator:
    """Finds the editor binary from configuration, environment or install roots."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        system: Optional[str] = None,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.system = system or platform.system()

    def install_roots(self) -> List[Path]:
        if custom := self.environ.get("UNITOOL_UNITY_DIR"):
            return [Path(p).expanduser() for p in custom.split(os.pathsep) if p]
        defaults = DEFAULT_INSTALL_ROOTS.get(self.system, DEFAULT_INSTALL_ROOTS["Linux"])
        return [Path(p).expanduser() for p in defaults]

    def candidates(self, roots: Optional[Iterable[Path]] = None) -> List[Path]:
        """Editor binaries under the install roots, newest version first."""
        relatives = EDITOR_BINARIES.get(self.system, EDITOR_BINARIES["Linux"])
        found: List[Tuple[Tuple, Path]] = []
        for root in roots if roots is not None else self.install_roots():
            if not root.is_dir():
                continue
            for version_dir in root.iterdir():
                if not version_dir.is_dir():
                    continue
                for relative in relatives:
                    binary = version_dir / relative
                    if binary.is_file():
                        found.append((version_key(version_dir.name), binary))
        found.sort(key=lambda item: item[0], reverse=True)
        return [binary for _, binary in found]

    def find(self, explicit: Optional[Path] = None) -> Path:
        """
        Resolve the editor binary.

        Raises:
            LaunchError: If an explicit path is missing or nothing is installed.
        """
        if explicit is None and (env_path := self.environ.get("UNITY_PATH")):
            explicit = Path(env_path).expanduser()

        if explicit is not None:
            if not explicit.is_file():
                raise LaunchError(
                    f"Unity editor not found at {explicit}",
                    context=ErrorContext(command=str(explicit)),
                )
            logger.debug(f"Using configured Unity editor: {explicit}")
            return explicit

        roots = self.install_roots()
        candidates = self.candidates(roots)
        if not candidates:
            searched = ", ".join(str(r) for r in roots)
            raise LaunchError(
                "Could not find a Unity editor installation "
                f"(searched {searched}); set UNITOOL_UNITY_PATH or pass --unity",
                context=ErrorContext(additional_info={"searched": [str(r) for r in roots]}),
            )
        logger.debug(f"Discovered Unity editors: {[str(c) for c in candidates]}")
        return candidates[0]


def find_engine(explicit: Optional[Path] = None) -> Path:
    """Resolve the editor binary using the process environment."""
    return EngineLocator().find(explicit)
