"""
Corpus ingestion - builds the vector store snapshot from layered SRD data.

Generations are ingested in order. A record produced by a later generation
replaces any earlier record with the same id outright; fields are never merged.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Union

from ..core.config import CorpusGeneration
from ..core.errors import EmbeddingUnavailable
from .embeddings import IEmbeddingProvider
from .index import SimpleInMemoryVectorStore
from .snapshot import write_snapshot
from .types import VectorRecord
from util.logging import logger

SOURCE_FILE_PREFIX = "5e-SRD-"

# Categories whose items carry a short 'description' instead of 'desc'
DESCRIPTION_CATEGORIES = {
    "skills",
    "conditions",
    "damage-types",
    "magic-schools",
    "weapon-properties",
    "weapon-mastery-properties",
    "ability-scores",
    "alignments",
    "languages",
}

# Categories whose items carry a 'desc' list of paragraphs
DESC_CATEGORIES = {
    "spells",
    "monsters",
    "classes",
    "races",
    "backgrounds",
    "equipment",
    "magic-items",
    "features",
    "traits",
    "subclasses",
    "subraces",
    "feats",
    "levels",
    "proficiencies",
    "rules",
    "rule-sections",
}


def category_from_filename(filename: str) -> str:
    """'5e-SRD-spells.json' -> 'spells'."""
    stem = filename[:-len(".json")] if filename.endswith(".json") else filename
    return stem.replace(SOURCE_FILE_PREFIX, "", 1)


def join_fragments(value: Any) -> str:
    """Flatten a description that may be a list of paragraphs."""
    if isinstance(value, list):
        return " ".join(str(part) for part in value)
    if isinstance(value, str):
        return value
    return ""


def render_text(item: Dict[str, Any], category: str) -> str:
    """Render the 'name: description' text embedded for one source item."""
    if category in DESCRIPTION_CATEGORIES:
        description = join_fragments(item.get("description"))
    elif category in DESC_CATEGORIES:
        description = join_fragments(item.get("desc"))
    else:
        description = (
            join_fragments(item.get("description"))
            or join_fragments(item.get("desc"))
            or json.dumps(item, separators=(",", ":"), sort_keys=True)
        )
    return f"{item.get('name', '')}: {description}"


def record_id(category: str, item: Dict[str, Any], position: int) -> str:
    """Deterministic id: '{category}-{index}', falling back to file position."""
    local_index = item.get("index")
    if local_index is None or local_index == "":
        local_index = position
    return f"{category}-{local_index}"


def build_metadata(item: Dict[str, Any], category: str, version: str, source: str) -> Dict[str, Any]:
    """Original fields first, provenance keys on top."""
    metadata = dict(item)
    metadata.update({
        "name": item.get("name"),
        "type": category,
        "version": version,
        "source": source,
    })
    return metadata


def load_source_file(path: Path) -> List[Dict[str, Any]]:
    """Read one source collection (a JSON array of items)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Source file {path} must contain a JSON array, got {type(data).__name__}")
    return data


class CorpusIngestor:
    """
    Builds the vector store snapshot from corpus generations.

    One embedding call is made per source item, so a full SRD build can take
    a long time; it is meant to run offline. Any embedding failure aborts the
    run before the snapshot is written.
    """

    def __init__(self, embedding_provider: IEmbeddingProvider, progress_every: int = 25):
        self.embedding_provider = embedding_provider
        self.progress_every = progress_every

    def list_source_files(self, generation: CorpusGeneration) -> List[Path]:
        """Source files of a generation in sorted name order."""
        if not generation.directory.is_dir():
            raise FileNotFoundError(f"Corpus directory not found: {generation.directory}")
        return sorted(generation.directory.glob(generation.pattern), key=lambda p: p.name)

    def iter_generation(self, generation: CorpusGeneration) -> Iterator[VectorRecord]:
        """Yield embedded records for every item of a generation."""
        for path in self.list_source_files(generation):
            category = category_from_filename(path.name)
            items = load_source_file(path)
            total = len(items)

            logger.info(f"Processing {generation.version} {path.name} ({total} items)...")

            for position, item in enumerate(items):
                text = render_text(item, category)
                embedding = self.embedding_provider.embed(text)

                yield VectorRecord(
                    id=record_id(category, item, position),
                    text=text,
                    embedding=embedding,
                    metadata=build_metadata(item, category, generation.version, path.name),
                )

                processed = position + 1
                if processed % self.progress_every == 0 or processed == total:
                    logger.log_ingestion_progress(generation.version, path.name, processed, total)

    def build(self, generations: Sequence[CorpusGeneration]) -> List[VectorRecord]:
        """
        Ingest generations in order into one working set.

        Args:
            generations: Base generation first, overlays after

        Returns:
            Final records in store order
        """
        working_set = SimpleInMemoryVectorStore()
        replaced_count = 0
        dimension = None

        for generation in generations:
            for record in self.iter_generation(generation):
                # every stored vector must share one dimension
                if dimension is None:
                    dimension = len(record.embedding)
                elif len(record.embedding) != dimension:
                    raise EmbeddingUnavailable(
                        f"Embedding for {record.id} has dimension {len(record.embedding)}, "
                        f"expected {dimension}; the embedding model changed mid-build"
                    )

                replaced = working_set.add(record)
                if replaced is not None:
                    replaced_count += 1
                    logger.log_ingestion_replacement(
                        record.id,
                        replaced.metadata.get("version"),
                        record.metadata.get("version"),
                    )

        logger.log_operation("ingestion.build", "success", {
            "generations": [g.version for g in generations],
            "record_count": len(working_set),
            "replaced_count": replaced_count
        })
        return working_set.records()

    def build_snapshot(self, generations: Sequence[CorpusGeneration], snapshot_path: Union[str, Path]) -> int:
        """Build every generation and persist the result. Returns the record count."""
        records = self.build(generations)
        write_snapshot(snapshot_path, records)
        logger.log_operation("ingestion.persist", "success", {
            "path": str(snapshot_path),
            "record_count": len(records)
        })
        return len(records)
