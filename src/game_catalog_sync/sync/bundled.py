"""
Loader for the catalog shipped with the package.

The bundled file is untrusted like any other source; it is only
decoded here and validated by the orchestrator.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any

from game_catalog_sync.sync.exceptions import FormatError

BUNDLED_CATALOG_RESOURCE = "data/games.json"


class BundledCatalogLoader:
    """
    Reads the bundled catalog synchronously.

    Example:
        >>> raw = BundledCatalogLoader()()
        >>> report = CatalogValidator().validate(raw)
    """

    def __init__(self, path: Path | None = None) -> None:
        """
        Args:
            path: Catalog file to read instead of the packaged one
        """
        self._path = path

    @property
    def location(self) -> str:
        if self._path is not None:
            return str(self._path)
        return f"game_catalog_sync/{BUNDLED_CATALOG_RESOURCE}"

    def _read_text(self) -> str:
        if self._path is not None:
            return self._path.read_text(encoding="utf-8")
        return (
            resources.files("game_catalog_sync")
            .joinpath(BUNDLED_CATALOG_RESOURCE)
            .read_text(encoding="utf-8")
        )

    def __call__(self) -> Any:
        """
        Decode the bundled catalog.

        Raises:
            FormatError: If the file is missing or not valid JSON
        """
        try:
            return json.loads(self._read_text())
        except (OSError, ValueError) as e:
            raise FormatError(
                f"Bundled catalog unreadable: {self.location}",
                original_error=e,
            ) from e
