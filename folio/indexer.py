from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from .content import slugify
from .errors import DuplicateSlugCollision
from .models import Collection, DocType, Document
from .store import DocumentStore

POSTS_DIR = "posts"


def output_path(doc: Document) -> str:
    """Output file for ``doc``, relative to the output root."""
    segments = [slugify(part) for part in doc.id.split("/") if part.strip()]
    if not segments:
        segments = [slugify(doc.id)]
    path = "/".join(segments) + ".html"
    if doc.type is DocType.POST:
        return f"{POSTS_DIR}/{path}"
    return path


def claim_paths(
    claims: Iterable[tuple[str, str]], taken: Optional[dict[str, str]] = None
) -> dict[str, str]:
    """Record ``(path, owner)`` claims, failing when two owners share a path."""
    owners = dict(taken or {})
    for path, owner in claims:
        previous = owners.get(path)
        if previous is not None and previous != owner:
            raise DuplicateSlugCollision(path, previous, owner)
        owners[path] = owner
    return owners


def sort_posts(posts: Iterable[Document]) -> list[Document]:
    ordered = sorted(posts, key=lambda doc: doc.id)
    # stable: equal dates keep id order
    ordered.sort(key=lambda doc: doc.date or dt.datetime.min, reverse=True)
    return ordered


def build_collections(store: DocumentStore) -> dict[DocType, Collection]:
    published = [doc for doc in store.all() if doc.published]
    claim_paths((output_path(doc), doc.id) for doc in published)

    posts = sort_posts(doc for doc in published if doc.type is DocType.POST)
    pages = sorted((doc for doc in published if doc.type is DocType.PAGE), key=lambda doc: doc.id)
    return {
        DocType.POST: Collection("posts", DocType.POST, tuple(posts)),
        DocType.PAGE: Collection("pages", DocType.PAGE, tuple(pages)),
    }
