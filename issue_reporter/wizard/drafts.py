import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from issue_reporter import config

logger = logging.getLogger(__name__)


class DraftStore:
    """A single local slot holding a snapshot of the wizard's field values."""

    def __init__(self, path: str = config.DRAFT_PATH):
        self.path = Path(path)

    def save(self, values: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(dict(values), default=str), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def load(self) -> Optional[dict[str, Any]]:
        """Return the saved snapshot, or None if there is no usable draft."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable draft", extra={"path": str(self.path)})
            return None
        return data if isinstance(data, dict) else None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
