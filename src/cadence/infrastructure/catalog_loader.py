"""
Workspace file loading.

A workspace is a YAML document holding the catalog (containers and their
items) plus the saved progress records:

    containers:
      - id: spanish
        name: Spanish verbs
        relations: [es-en, en-es]
        items:
          - id: hablar
            tags: [verbs]
            content: {es: hablar, en: to speak}
            stats: {ankiState: Review, ankiDueDate: 1700000000000}
    confidenceProgresses: [...]   # camelCase ConfidenceProgress records
    ankiProgresses: [...]         # camelCase AnkiProgress records
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
import yaml.constructor
from pydantic import Field, ValidationError

from cadence.domain.models import (
    AnkiConfig,
    AnkiProgress,
    Catalog,
    ConfidenceProgress,
    Container,
    LearningItem,
)
from cadence.infrastructure.records import (
    AnkiProgressRecord,
    ConfidenceProgressRecord,
    WireModel,
)

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a workspace file cannot be read or does not validate."""


class UniqueKeyLoader(yaml.SafeLoader):
    """
    Custom YAML loader that forbids duplicate keys.
    """

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


class ItemEntry(WireModel):
    id: str
    tags: list[str] = Field(default_factory=list)
    content: dict[str, Any] = Field(default_factory=dict)
    stats: dict[str, Any] = Field(default_factory=dict)


class ContainerEntry(WireModel):
    id: str
    name: str = ""
    relations: list[str] = Field(default_factory=list)
    items: list[ItemEntry] = Field(default_factory=list)


class WorkspaceFile(WireModel):
    containers: list[ContainerEntry] = Field(default_factory=list)
    confidence_progresses: list[ConfidenceProgressRecord] = Field(default_factory=list)
    anki_progresses: list[AnkiProgressRecord] = Field(default_factory=list)


@dataclass
class Workspace:
    catalog: Catalog
    confidence_progresses: dict[str, ConfidenceProgress] = field(default_factory=dict)
    anki_progresses: dict[str, AnkiProgress] = field(default_factory=dict)


def parse_workspace(
    data: dict[str, Any], default_anki_config: AnkiConfig | None = None
) -> Workspace:
    """Validate an already-decoded workspace document."""
    try:
        doc = WorkspaceFile.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"Invalid workspace: {e}") from e

    catalog = Catalog()
    for entry in doc.containers:
        catalog.containers[entry.id] = Container(
            id=entry.id, name=entry.name, relation_ids=tuple(entry.relations)
        )
        for item in entry.items:
            catalog.items.append(
                LearningItem(
                    id=item.id,
                    container_id=entry.id,
                    tag_ids=tuple(item.tags),
                    content=item.content,
                    stats=item.stats,
                )
            )

    return Workspace(
        catalog=catalog,
        confidence_progresses={r.id: r.to_domain() for r in doc.confidence_progresses},
        anki_progresses={r.id: r.to_domain(default_anki_config) for r in doc.anki_progresses},
    )


def load_workspace(path: Path, default_anki_config: AnkiConfig | None = None) -> Workspace:
    """
    Read and validate a workspace file.

    Raises:
        CatalogError: if the file is missing, is not valid YAML, or does not
            match the workspace shape.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.load(raw, Loader=UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"{path}: top level must be a mapping")

    workspace = parse_workspace(data, default_anki_config)
    logger.debug(
        f"Loaded {path}: {len(workspace.catalog.items)} items, "
        f"{len(workspace.confidence_progresses)} confidence sets, "
        f"{len(workspace.anki_progresses)} decks"
    )
    return workspace
