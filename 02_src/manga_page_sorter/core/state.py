"""Run state for chapter sorting with memory and disk backends.

State is diagnostics only: raw VLM responses per stage and the final
result. The page order itself is persisted by the caller.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Protocol

import yaml

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Protocol for state storage backends."""

    def save(self, key: str, value: Any) -> None:
        """Save value by key ("vlm_responses/analysis", "results/page_order")."""
        ...

    def load(self, key: str, default: Any = None) -> Any:
        """Load value by key, returning default if absent."""
        ...

    def exists(self, key: str) -> bool:
        ...


class MemoryStorage:
    """In-memory storage backend, discarded with the processor."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}
        logger.debug("Initialized MemoryStorage backend")

    def save(self, key: str, value: Any) -> None:
        self._data[key] = value
        logger.debug(f"MemoryStorage: saved key '{key}'")

    def load(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def exists(self, key: str) -> bool:
        return key in self._data


class DiskStorage:
    """File-based storage backend: JSON for VLM responses, YAML for results."""

    def __init__(self, state_dir: Path) -> None:
        """Initialize disk storage with directory structure.

        Args:
            state_dir: Run directory
        """
        self.state_dir = Path(state_dir)
        self.vlm_responses_dir = self.state_dir / "cache" / "vlm_responses"
        self.results_dir = self.state_dir / "results"

        for directory in (self.vlm_responses_dir, self.results_dir):
            directory.mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized DiskStorage backend at {self.state_dir}")

    def _get_file_path(self, key: str) -> tuple[Path, str]:
        """Parse key and determine file path and format.

        Returns:
            Tuple of (file_path, format) where format is "json" or "yaml"
        """
        parts = key.split("/", 1)
        if len(parts) != 2 or not parts[1]:
            raise ValueError(f"Invalid key format: '{key}'. Expected 'type/name'")

        key_type, name = parts

        if key_type == "vlm_responses":
            return self.vlm_responses_dir / f"response_{name}.json", "json"
        elif key_type == "results":
            return self.results_dir / f"{name}.yaml", "yaml"
        else:
            raise ValueError(f"Unknown key type: '{key_type}'")

    def save(self, key: str, value: Any) -> None:
        file_path, format_type = self._get_file_path(key)

        with file_path.open("w", encoding="utf-8") as f:
            if format_type == "json":
                json.dump(value, f, ensure_ascii=False, indent=2)
            else:
                yaml.safe_dump(value, f, allow_unicode=True, default_flow_style=False, sort_keys=False)

        logger.info(f"DiskStorage: saved key '{key}' to {file_path}")

    def load(self, key: str, default: Any = None) -> Any:
        file_path, format_type = self._get_file_path(key)

        if not file_path.exists():
            return default

        with file_path.open("r", encoding="utf-8") as f:
            if format_type == "json":
                return json.load(f)
            return yaml.safe_load(f)

    def exists(self, key: str) -> bool:
        file_path, _ = self._get_file_path(key)
        return file_path.exists()


@dataclass
class SortState:
    """Container for one chapter sort.

    Attributes:
        vlm_responses: Stage name -> raw VLM response
        operation_results: Result name -> result data
    """

    vlm_responses: Dict[str, Any] = field(default_factory=dict)
    operation_results: Dict[str, Any] = field(default_factory=dict)


class StateManager:
    """Manager for sort state with pluggable storage backend."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage
        self.state = SortState()
        logger.debug(f"Initialized StateManager with {type(storage).__name__}")

    def save_vlm_response(self, stage: str, response: Dict[str, Any]) -> None:
        """Save VLM response of a stage ("analysis", "sequence").

        The bulky "raw" part is kept in memory only; storage gets text and usage.
        """
        self.state.vlm_responses[stage] = response
        stored = {k: v for k, v in response.items() if k != "raw"}
        self.storage.save(f"vlm_responses/{stage}", stored)
        logger.debug(f"Saved VLM response for '{stage}'")

    def save_operation_result(self, name: str, result: Any) -> None:
        """Save result data (YAML on disk)."""
        self.storage.save(f"results/{name}", result)
        self.state.operation_results[name] = result
        logger.info(f"Saved operation result for '{name}'")
