from __future__ import annotations

import json
from pathlib import Path

from ..core.domain.models import Bundle, Component
from .emitters.json_emitter import finding_to_dict

MANIFEST_NAME = "components.json"


class ExtractStore:
    """Materializes a loaded bundle on disk with a classification manifest.

    Entry paths were validated by the loader, so they always resolve under
    the output directory.
    """

    def save(self, bundle: Bundle, components: list[Component], output_dir: Path) -> Path:
        output_dir.mkdir(parents=True, exist_ok=True)
        for entry in bundle.entries:
            target = output_dir / entry.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(entry.data)

        manifest = {
            "bundlePath": bundle.source_path,
            "entryCount": len(bundle.entries),
            "components": [
                {
                    "id": c.id,
                    "kind": c.kind.value,
                    "declaredKind": c.declared_kind.value if c.declared_kind else None,
                    "name": c.name,
                    "paths": c.paths,
                    "diagnostics": [finding_to_dict(f) for f in c.diagnostics],
                }
                for c in components
            ],
        }
        path = output_dir / MANIFEST_NAME
        path.write_text(json.dumps(manifest, ensure_ascii=False, indent=2), encoding="utf-8")
        return path
