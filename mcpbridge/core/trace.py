"""Optional per-step diagnostic trace files."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class StepTracer:
    """
    Writes one ``step<N>.yaml`` file per model exchange or tool result.

    Disabled when constructed without a directory. Trace files are purely
    diagnostic: write failures are logged and otherwise ignored.
    """

    def __init__(self, trace_dir: Optional[Path] = None):
        self.trace_dir = Path(trace_dir) if trace_dir else None
        self._index = 0

    @property
    def enabled(self) -> bool:
        return self.trace_dir is not None

    def reset(self) -> None:
        """Delete trace files from a previous session and restart numbering."""
        self._index = 0
        if not self.enabled:
            return
        try:
            self.trace_dir.mkdir(parents=True, exist_ok=True)
            for path in self.trace_dir.glob("step*.yaml"):
                path.unlink()
        except OSError as e:
            logger.warning("Could not clear trace directory %s: %s", self.trace_dir, e)

    def record(self, kind: str, data: Dict[str, Any]) -> Optional[Path]:
        """Write the next step file; returns its path, or None when disabled or failed."""
        if not self.enabled:
            return None

        self._index += 1
        path = self.trace_dir / f"step{self._index}.yaml"
        entry = {
            "step": self._index,
            "kind": kind,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        try:
            self.trace_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(entry, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not write trace file %s: %s", path, e)
            return None
        return path
