#!/usr/bin/env python3
"""
Corpus build and query utility.

Builds the vector store snapshot from the base and overlay SRD generations,
and runs ad-hoc similarity queries against an existing snapshot.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from charforge.core.config import (
    CorpusGeneration,
    get_corpus_generations,
    get_embedding_config,
    get_retrieval_top_k,
    get_snapshot_path,
    validate_config,
)
from charforge.core.errors import EmbeddingUnavailable, StoreNotFound
from charforge.vector.corpus import CorpusIngestor
from charforge.vector.embeddings import DeterministicHashEmbedding, IEmbeddingProvider, OllamaEmbeddingProvider
from charforge.vector.store import VectorStore


def make_provider(hash_embeddings: bool) -> IEmbeddingProvider:
    """Ollama-backed provider, or the offline hash provider for smoke runs."""
    if hash_embeddings:
        return DeterministicHashEmbedding()
    return OllamaEmbeddingProvider(get_embedding_config())


def resolve_generations(base_dir: Optional[str], overlay_dir: Optional[str]) -> List[CorpusGeneration]:
    """Configured generations with command-line directory overrides applied."""
    base, overlay = get_corpus_generations()
    if base_dir:
        base = CorpusGeneration(version=base.version, directory=Path(base_dir), pattern=base.pattern)
    if overlay_dir:
        overlay = CorpusGeneration(version=overlay.version, directory=Path(overlay_dir), pattern=overlay.pattern)
    return [base, overlay]


def run_build(args) -> int:
    generations = resolve_generations(args.base_dir, args.overlay_dir)
    output = Path(args.output) if args.output else get_snapshot_path()

    for generation in generations:
        if not generation.directory.is_dir():
            print(f"ERROR: Corpus directory not found: {generation.directory}")
            return 1

    print("Starting corpus build...")
    for generation in generations:
        print(f"  {generation.version}: {generation.directory}")

    ingestor = CorpusIngestor(make_provider(args.hash_embeddings))
    try:
        count = ingestor.build_snapshot(generations, output)
    except EmbeddingUnavailable as e:
        print(f"ERROR: Embedding failed, snapshot not written: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"✓ Wrote {count} records to {output}")
    return 0


def run_query(args) -> int:
    snapshot = Path(args.snapshot) if args.snapshot else get_snapshot_path()
    top_k = args.top_k if args.top_k is not None else get_retrieval_top_k()

    store = VectorStore(make_provider(args.hash_embeddings), snapshot_path=snapshot)
    try:
        hits = store.query(args.text, top_k=top_k)
    except StoreNotFound as e:
        print(f"ERROR: {e}")
        return 1
    except EmbeddingUnavailable as e:
        print(f"ERROR: Could not embed query: {e}")
        return 1
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    if args.json:
        print(json.dumps([
            {"id": hit.id, "score": hit.score, "text": hit.text, "version": hit.metadata.get("version")}
            for hit in hits
        ], indent=2))
        return 0

    if not hits:
        print("No results (empty store).")
        return 0

    for rank, hit in enumerate(hits, 1):
        print(f"{rank}. [{hit.score:.4f}] {hit.id} ({hit.metadata.get('version')})")
        print(f"   {hit.text[:200]}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build and query the SRD vector store snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s build                                  # Ingest configured generations
  %(prog)s build --base-dir data/2014 --overlay-dir data/2024
  %(prog)s build --hash-embeddings                # Offline build, no Ollama
  %(prog)s query "How does a wizard prepare spells?" --top-k 5

Environment variables:
- OLLAMA_BASE_URL=http://localhost:11434
- OLLAMA_EMBED_MODELS=nomic-embed-text,mxbai-embed-large,all-minilm
- VECTOR_SNAPSHOT_PATH=./data/dnd_vectors.json
- CORPUS_BASE_DIR=./data/2014, CORPUS_OVERLAY_DIR=./data/2024
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Ingest corpus generations into a snapshot")
    build.add_argument("--base-dir", help="Base generation directory (default: CORPUS_BASE_DIR)")
    build.add_argument("--overlay-dir", help="Overlay generation directory (default: CORPUS_OVERLAY_DIR)")
    build.add_argument("--output", "-o", help="Snapshot file (default: VECTOR_SNAPSHOT_PATH)")
    build.add_argument(
        "--hash-embeddings",
        action="store_true",
        help="Use deterministic hash embeddings instead of Ollama"
    )
    build.set_defaults(func=run_build)

    query = subparsers.add_parser("query", help="Similarity search against a snapshot")
    query.add_argument("text", help="Query text")
    query.add_argument("--top-k", "-k", type=int, help="Number of results (default: RETRIEVAL_TOP_K)")
    query.add_argument("--snapshot", "-s", help="Snapshot file (default: VECTOR_SNAPSHOT_PATH)")
    query.add_argument(
        "--hash-embeddings",
        action="store_true",
        help="Embed the query with deterministic hash embeddings"
    )
    query.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    query.set_defaults(func=run_query)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.hash_embeddings:
        for issue in validate_config():
            print(f"WARNING: {issue}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
