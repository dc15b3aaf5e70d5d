from __future__ import annotations

from pathlib import Path

from ..domain.models import Component
from ..ports import ArchiveLoaderPort, ExtractStorePort, LoggerPort
from ..services import ComponentClassifier


class ExtractUseCase:
    """Use case for unpacking a bundle and recording its classification.

    Runs the loader and classifier only; no rules, no scoring.
    """

    def __init__(
        self,
        *,
        loader: ArchiveLoaderPort,
        classifier: ComponentClassifier,
        store: ExtractStorePort,
        logger: LoggerPort,
    ) -> None:
        self._loader = loader
        self._classifier = classifier
        self._store = store
        self._logger = logger

    def execute(self, *, bundle_path: Path, output_dir: Path) -> tuple[list[Component], Path]:
        bundle = self._loader.load(bundle_path)
        self._logger.info(
            "bundle_loaded",
            type="bundle_loaded",
            entries=len(bundle.entries),
            total_bytes=bundle.total_size,
        )
        components = self._classifier.classify(bundle)
        manifest = self._store.save(bundle, components, output_dir)
        return components, manifest
