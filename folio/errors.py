from __future__ import annotations


class FolioError(Exception):
    """Base class for every error raised by folio."""


class ConfigError(FolioError):
    pass


class ParseError(FolioError):
    """A resource could not be turned into a document."""


class MissingMetadataBlock(ParseError):
    def __init__(self) -> None:
        super().__init__("missing '---' metadata block at the start of the file")


class MissingRequiredField(ParseError):
    def __init__(self, field: str) -> None:
        super().__init__(f"missing required field: {field}")
        self.field = field


class InvalidDate(ParseError):
    def __init__(self, value: str) -> None:
        super().__init__(f"invalid date: {value!r}")
        self.value = value


class InvalidField(ParseError):
    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"invalid value for {field}: {value!r}")
        self.field = field
        self.value = value


class UnreadableResource(ParseError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"cannot read file: {reason}")
        self.reason = reason


class RenderError(FolioError):
    pass


class UnknownTemplate(RenderError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown template: {name!r}")
        self.name = name


class CollectionIndexError(FolioError):
    pass


class DuplicateSlugCollision(CollectionIndexError):
    def __init__(self, path: str, first_id: str, second_id: str) -> None:
        super().__init__(f"{first_id!r} and {second_id!r} both write to {path}")
        self.path = path
        self.first_id = first_id
        self.second_id = second_id


class DocumentNotFound(FolioError, KeyError):
    def __init__(self, doc_id: str) -> None:
        super().__init__(doc_id)
        self.doc_id = doc_id

    def __str__(self) -> str:
        return f"no document with id {self.doc_id!r}"


class StoreFrozen(FolioError):
    pass
