from __future__ import annotations

from typing import Iterator

from .errors import DocumentNotFound, StoreFrozen
from .models import Document


class DocumentStore:
    """Documents of one build, keyed by id.

    ``put`` overwrites an existing id in place, so the last resource processed
    for an id wins while the id keeps its original position in ``all()``.
    """

    def __init__(self) -> None:
        self._docs: dict[str, Document] = {}
        self._frozen = False

    def put(self, doc: Document) -> None:
        if self._frozen:
            raise StoreFrozen(f"cannot add {doc.id!r} to a frozen store")
        self._docs[doc.id] = doc

    def get(self, doc_id: str) -> Document:
        try:
            return self._docs[doc_id]
        except KeyError:
            raise DocumentNotFound(doc_id) from None

    def all(self) -> Iterator[Document]:
        for doc in self._docs.values():
            yield doc

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._docs

    def __len__(self) -> int:
        return len(self._docs)
