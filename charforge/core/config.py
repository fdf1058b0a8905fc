"""
Configuration for the retrieval and character-creation core.
Environment variables (optionally from a .env file) feed explicit config objects.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Ollama endpoint and chat model
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "dmgpt5e")

# Embedding candidates, tried in this order
DEFAULT_EMBED_MODELS = "nomic-embed-text,mxbai-embed-large,all-minilm"
OLLAMA_EMBED_MODELS = os.getenv("OLLAMA_EMBED_MODELS", DEFAULT_EMBED_MODELS)
EMBED_TIMEOUT_SEC = float(os.getenv("EMBED_TIMEOUT_SEC", "30"))

# Chat sampling options
CHAT_TIMEOUT_SEC = float(os.getenv("CHAT_TIMEOUT_SEC", "300"))
CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0"))
CHAT_TOP_P = float(os.getenv("CHAT_TOP_P", "0.9"))
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "1500"))
CHAT_STREAM = os.getenv("CHAT_STREAM", "false").lower() == "true"

# Vector snapshot and corpus locations
VECTOR_SNAPSHOT_PATH = os.getenv("VECTOR_SNAPSHOT_PATH", "./data/dnd_vectors.json")
CORPUS_BASE_DIR = os.getenv("CORPUS_BASE_DIR", "./data/2014")
CORPUS_OVERLAY_DIR = os.getenv("CORPUS_OVERLAY_DIR", "./data/2024")
CORPUS_BASE_VERSION = os.getenv("CORPUS_BASE_VERSION", "2014")
CORPUS_OVERLAY_VERSION = os.getenv("CORPUS_OVERLAY_VERSION", "2024")
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "3"))


@dataclass
class EmbeddingConfig:
    """Connection settings for the embedding endpoint."""
    endpoint_base_url: str
    candidate_models: List[str]
    timeout_seconds: float = 30.0

    def __post_init__(self):
        self.endpoint_base_url = self.endpoint_base_url.rstrip("/")
        self.candidate_models = [m.strip() for m in self.candidate_models if m and m.strip()]


@dataclass
class ChatConfig:
    """Connection and sampling settings for the chat endpoint."""
    base_url: str
    model: str
    temperature: float = 0.0
    top_p: float = 0.9
    max_tokens: int = 1500
    timeout_seconds: float = 300.0
    stream: bool = False

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")


@dataclass
class CorpusGeneration:
    """One layer of source data; later generations supersede earlier ones by id."""
    version: str
    directory: Path
    pattern: str = field(default="*.json")

    def __post_init__(self):
        self.directory = Path(self.directory)


def parse_model_list(raw: str) -> List[str]:
    """Split a comma-separated model list, dropping blanks."""
    return [m.strip() for m in raw.split(",") if m.strip()]


def get_embedding_config() -> EmbeddingConfig:
    """Build the embedding config from the current environment."""
    return EmbeddingConfig(
        endpoint_base_url=os.getenv("OLLAMA_BASE_URL", OLLAMA_BASE_URL),
        candidate_models=parse_model_list(os.getenv("OLLAMA_EMBED_MODELS", OLLAMA_EMBED_MODELS)),
        timeout_seconds=float(os.getenv("EMBED_TIMEOUT_SEC", str(EMBED_TIMEOUT_SEC))),
    )


def get_chat_config() -> ChatConfig:
    """Build the chat config from the current environment."""
    return ChatConfig(
        base_url=os.getenv("OLLAMA_BASE_URL", OLLAMA_BASE_URL),
        model=os.getenv("OLLAMA_MODEL", OLLAMA_MODEL),
        temperature=float(os.getenv("CHAT_TEMPERATURE", str(CHAT_TEMPERATURE))),
        top_p=float(os.getenv("CHAT_TOP_P", str(CHAT_TOP_P))),
        max_tokens=int(os.getenv("CHAT_MAX_TOKENS", str(CHAT_MAX_TOKENS))),
        timeout_seconds=float(os.getenv("CHAT_TIMEOUT_SEC", str(CHAT_TIMEOUT_SEC))),
        stream=os.getenv("CHAT_STREAM", str(CHAT_STREAM)).lower() == "true",
    )


def get_corpus_generations() -> List[CorpusGeneration]:
    """Base generation first, overlay second."""
    return [
        CorpusGeneration(
            version=os.getenv("CORPUS_BASE_VERSION", CORPUS_BASE_VERSION),
            directory=os.getenv("CORPUS_BASE_DIR", CORPUS_BASE_DIR),
        ),
        CorpusGeneration(
            version=os.getenv("CORPUS_OVERLAY_VERSION", CORPUS_OVERLAY_VERSION),
            directory=os.getenv("CORPUS_OVERLAY_DIR", CORPUS_OVERLAY_DIR),
        ),
    ]


def get_snapshot_path() -> Path:
    """Location of the persisted vector store snapshot."""
    return Path(os.getenv("VECTOR_SNAPSHOT_PATH", VECTOR_SNAPSHOT_PATH))


def get_retrieval_top_k() -> int:
    """Number of context records retrieved per chat turn."""
    return int(os.getenv("RETRIEVAL_TOP_K", str(RETRIEVAL_TOP_K)))


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    embedding = get_embedding_config()
    if not embedding.candidate_models:
        issues.append("OLLAMA_EMBED_MODELS must name at least one model")
    if embedding.timeout_seconds <= 0:
        issues.append("EMBED_TIMEOUT_SEC must be > 0")

    chat = get_chat_config()
    if not chat.model:
        issues.append("OLLAMA_MODEL must not be empty")
    if chat.timeout_seconds <= 0:
        issues.append("CHAT_TIMEOUT_SEC must be > 0")
    if not 0 <= chat.top_p <= 1:
        issues.append(f"Invalid CHAT_TOP_P: {chat.top_p}")
    if chat.max_tokens < 1:
        issues.append("CHAT_MAX_TOKENS must be >= 1")

    if get_retrieval_top_k() < 1:
        issues.append("RETRIEVAL_TOP_K must be >= 1")

    return issues
