from __future__ import annotations

import datetime as dt
import enum
import types
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional


class DocType(enum.Enum):
    PAGE = "page"
    POST = "post"


@dataclass(frozen=True)
class Document:
    id: str
    type: DocType
    title: str
    template_name: str
    body: str
    published: bool = True
    date: Optional[dt.datetime] = None
    source: str = ""
    extra: Mapping[str, object] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        frozen = {key: tuple(value) if isinstance(value, list) else value for key, value in self.extra.items()}
        object.__setattr__(self, "extra", types.MappingProxyType(frozen))

    @property
    def categories(self) -> list[str]:
        value = self.extra.get("categories") or self.extra.get("tags") or []
        return list(value) if isinstance(value, (list, tuple)) else [str(value)]


@dataclass(frozen=True)
class Collection:
    name: str
    type: DocType
    documents: tuple[Document, ...] = ()

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    def ids(self) -> list[str]:
        return [doc.id for doc in self.documents]

    def neighbours(self, doc_id: str) -> tuple[Optional[Document], Optional[Document]]:
        """Return the (previous, next) entries around ``doc_id``.

        For the post collection, sorted newest first, that is (newer, older).
        Documents not in the collection have no neighbours.
        """
        ids = self.ids()
        if doc_id not in ids:
            return None, None
        idx = ids.index(doc_id)
        before = self.documents[idx - 1] if idx > 0 else None
        after = self.documents[idx + 1] if idx + 1 < len(self.documents) else None
        return before, after


@dataclass(frozen=True)
class RenderContext:
    document: Document
    collections: Mapping[DocType, Collection]
    root: str = "."

    def collection(self, doc_type: DocType) -> Collection:
        return self.collections.get(doc_type) or Collection(doc_type.value + "s", doc_type)


@dataclass(frozen=True)
class BuildIssue:
    document_id: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.document_id}: {self.error}"


@dataclass
class BuildReport:
    documents_written: int = 0
    warnings: list[BuildIssue] = field(default_factory=list)
    errors: list[BuildIssue] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
