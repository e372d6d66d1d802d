"""Knowledge search - keyword retrieval over project docs and code"""
import os
import re
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ...config.settings import settings
from ...utils.logger import get_logger

logger = get_logger(__name__)

TEXT_EXTENSIONS = (".md", ".txt", ".py", ".json", ".yml", ".yaml", ".toml")
SKIPPED_DIRS = {"__pycache__", ".git", "node_modules", "dist", "build", ".venv"}
CODE_MARKERS = ("router", "service", "schema")

CHUNK_SIZE = 900
CHUNK_OVERLAP = 120
MAX_QUERY_TOKENS = 30

_TOKEN_SPLIT = re.compile(r"[^a-z0-9_/\-]+")


def tokenize(query: str) -> List[str]:
    """Lower-cased query terms (at most 30)"""
    return [t for t in _TOKEN_SPLIT.split(query.lower()) if t][:MAX_QUERY_TOKENS]


def chunk_text(text: str, size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> List[str]:
    """Split text into overlapping windows"""
    clean = text.replace("\r", "")
    chunks = []
    start = 0
    while start < len(clean):
        end = min(len(clean), start + size)
        chunks.append(clean[start:end])
        if end == len(clean):
            break
        start = max(0, end - overlap)
    return chunks


def score_chunk(tokens: Sequence[str], chunk: str) -> int:
    """+2 per query token present, +1 for code-like chunks"""
    lower = chunk.lower()
    score = sum(2 for t in tokens if t in lower)
    if any(marker in lower for marker in CODE_MARKERS):
        score += 1
    return score


def iter_text_files(root: str) -> Iterator[str]:
    """Text files under root, skipping caches, VCS, build output and env files"""
    if not os.path.isdir(root):
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRS)
        for filename in sorted(filenames):
            if ".env" in filename.lower():
                continue
            if os.path.splitext(filename)[1].lower() in TEXT_EXTENSIONS:
                yield os.path.join(dirpath, filename)


def search_knowledge(
    query: str,
    roots: Optional[Sequence[str]] = None,
    max_hits: int = 6
) -> List[Dict[str, Any]]:
    """
    Rank chunks of project files against a query.

    Returns up to ``max_hits`` dicts of ``{file, score, snippet}``, best
    first, with paths relative to the working directory.
    """
    tokens = tokenize(query)
    if roots is None:
        roots = settings.knowledge_roots_list

    hits: List[Dict[str, Any]] = []
    for root in roots:
        abs_root = root if os.path.isabs(root) else os.path.join(os.getcwd(), root)
        for path in iter_text_files(abs_root):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    text = f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping unreadable file {path}: {e}")
                continue

            for chunk in chunk_text(text):
                score = score_chunk(tokens, chunk)
                if score > 0:
                    hits.append({
                        "file": os.path.relpath(path, os.getcwd()),
                        "score": score,
                        "snippet": chunk,
                    })

    hits.sort(key=lambda h: h["score"], reverse=True)
    return hits[:max_hits]
