from .builder import build
from .config import SiteConfig, load_config
from .content import parse_document
from .indexer import build_collections, output_path
from .models import BuildIssue, BuildReport, Collection, DocType, Document, RenderContext
from .render import TemplateRenderer
from .store import DocumentStore

__all__ = [
    "BuildIssue",
    "BuildReport",
    "Collection",
    "DocType",
    "Document",
    "DocumentStore",
    "RenderContext",
    "SiteConfig",
    "TemplateRenderer",
    "build",
    "build_collections",
    "load_config",
    "output_path",
    "parse_document",
]
