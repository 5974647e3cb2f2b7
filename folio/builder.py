from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional, TypeVar, Union

from .config import SiteConfig
from .content import discover_resources, parse_document
from .errors import DuplicateSlugCollision, FolioError, ParseError, RenderError, UnreadableResource
from .indexer import build_collections, claim_paths, output_path
from .models import BuildIssue, BuildReport, Document, RenderContext
from .pages import build_collection_pages
from .render import TemplateRenderer
from .store import DocumentStore
from .utils import clean_output_dir, copy_static, relative_root, resolve_workers, write_text

COLLECTION_OWNER = "<collection pages>"

T = TypeVar("T")
R = TypeVar("R")


def run_parallel(func: Callable[[T], R], items: Iterable[T], workers: int) -> list[R]:
    """Map ``func`` over ``items``, keeping input order in the result."""
    items = list(items)
    if workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(func, items))


def load_store(source_root: Path, workers: int, report: BuildReport) -> DocumentStore:
    def parse_one(path: Path) -> tuple[str, Optional[Document], Optional[ParseError]]:
        rel = path.relative_to(source_root).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as exc:
            return rel, None, UnreadableResource(str(exc))
        try:
            return rel, parse_document(rel, text), None
        except ParseError as exc:
            return rel, None, exc

    store = DocumentStore()
    for rel, doc, error in run_parallel(parse_one, discover_resources(source_root), workers):
        if error is not None:
            report.warnings.append(BuildIssue(rel, error))
            continue
        store.put(doc)
    store.freeze()
    return store


def build(
    source_root: Union[str, Path],
    output_root: Union[str, Path],
    config: Optional[SiteConfig] = None,
) -> BuildReport:
    """Build the site under ``source_root`` into ``output_root``.

    Documents that fail to parse or render are skipped and reported as
    warnings. An output path collision is fatal and nothing is written.
    """
    source_root = Path(source_root)
    output_root = Path(output_root)
    config = config or SiteConfig()
    workers = resolve_workers(config.build_workers)
    report = BuildReport()

    if not source_root.is_dir():
        error = FolioError(f"Source directory not found: {source_root}")
        report.errors.append(BuildIssue(str(source_root), error))
        return report

    store = load_store(source_root, workers, report)
    renderer = TemplateRenderer(config)

    try:
        collections = build_collections(store)
        documents = {output_path(doc): doc for collection in collections.values() for doc in collection}
        listing = build_collection_pages(renderer, collections)
        owners = claim_paths((path, COLLECTION_OWNER) for path in listing)
        claim_paths(((path, doc.id) for path, doc in documents.items()), taken=owners)
    except DuplicateSlugCollision as exc:
        report.errors.append(BuildIssue(exc.second_id, exc))
        return report

    def render_one(item: tuple[str, Document]) -> tuple[str, Document, Optional[str], Optional[RenderError]]:
        path, doc = item
        context = RenderContext(doc, collections, relative_root(path))
        try:
            return path, doc, renderer.render(doc, context), None
        except RenderError as exc:
            return path, doc, None, exc

    outputs = dict(listing)
    written = 0
    for path, doc, text, error in run_parallel(render_one, sorted(documents.items()), workers):
        if error is not None:
            report.warnings.append(BuildIssue(doc.id, error))
            continue
        outputs[path] = text
        written += 1

    try:
        if config.clean:
            protected = [source_root, Path.cwd()]
            protected += [path for path in (config.static_dir, config.templates_dir) if path is not None]
            clean_output_dir(output_root, protected)
    except FolioError as exc:
        report.errors.append(BuildIssue(str(output_root), exc))
        return report

    output_root.mkdir(parents=True, exist_ok=True)
    if config.static_dir is not None and config.static_dir.is_dir():
        copy_static(config.static_dir, output_root)
    for path in sorted(outputs):
        write_text(output_root / path, outputs[path])

    report.documents_written = written
    report.outputs = sorted(outputs)
    return report
