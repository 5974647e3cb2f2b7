from __future__ import annotations

import datetime as dt
import html as html_lib
import re
from pathlib import Path, PurePosixPath
from typing import Optional

from .errors import InvalidDate, InvalidField, MissingMetadataBlock, MissingRequiredField
from .models import DocType, Document
from .utils import parse_bool

FRONT_MATTER_MARKER = "---"
SOURCE_SUFFIXES = {".md", ".markdown"}
LIST_KEYS = {"categories", "tags", "archive"}
FIELD_KEYS = {"title", "layout", "date", "time", "published", "type"}
POST_DIRS = {"_posts", "posts"}
COLLECTION_DIRS = POST_DIRS | {"_pages", "pages"}
DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")
LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")
WORD_RE = re.compile(r"[A-Za-z0-9]+(?:'[A-Za-z0-9]+)?")


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "untitled"


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1]
        items = [item.strip().strip("'\"") for item in inner.split(",")]
    else:
        items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def parse_front_matter(text: str) -> tuple[dict, str]:
    """Split ``text`` into its metadata mapping and body.

    The block must open on the first line and close on a later ``---`` line;
    anything else raises :class:`MissingMetadataBlock`.
    """
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_MARKER:
        raise MissingMetadataBlock()

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_MARKER:
            end = i
            break
    if end is None:
        raise MissingMetadataBlock()

    meta = {}
    for line in lines[1:end]:
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = unquote(value.strip())
        if key in LIST_KEYS:
            meta[key] = parse_list(value)
        else:
            meta[key] = value
    body = "\n".join(lines[end + 1 :])
    return meta, body


def _parse_datetime(value: str) -> Optional[dt.datetime]:
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return dt.datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_date(meta: dict) -> Optional[dt.datetime]:
    date_value = (meta.get("date") or "").strip()
    time_value = (meta.get("time") or "").strip()
    if not date_value:
        return None
    value = _parse_datetime(date_value)
    if value is None:
        raise InvalidDate(date_value)
    has_time = "T" in date_value or " " in date_value
    if time_value and not has_time:
        try:
            value = dt.datetime.combine(value.date(), dt.time.fromisoformat(time_value))
        except ValueError:
            raise InvalidDate(f"{date_value} {time_value}") from None
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


def resolve_type(meta: dict, source: str) -> DocType:
    explicit = (meta.get("type") or "").strip().lower()
    if explicit:
        try:
            return DocType(explicit)
        except ValueError:
            raise InvalidField("type", explicit) from None
    parts = PurePosixPath(source).parts
    if len(parts) > 1 and parts[0] in POST_DIRS:
        return DocType.POST
    if (meta.get("layout") or "").strip().lower() == DocType.POST.value:
        return DocType.POST
    return DocType.PAGE


def resolve_id(meta: dict, source: str, doc_type: DocType) -> str:
    for key in ("id", "slug"):
        value = (meta.get(key) or "").strip().strip("/")
        if value:
            return value
    permalink = (meta.get("permalink") or "").strip().strip("/")
    if permalink.endswith(".html"):
        permalink = permalink[: -len(".html")]
    if permalink:
        return permalink

    parts = list(PurePosixPath(source).with_suffix("").parts)
    if len(parts) > 1 and parts[0] in COLLECTION_DIRS:
        parts = parts[1:]
    if doc_type is DocType.POST:
        parts[-1] = DATE_PREFIX_RE.sub("", parts[-1]) or parts[-1]
    return "/".join(parts)


def parse_document(source: str, text: str) -> Document:
    meta, body = parse_front_matter(text)

    title = (meta.get("title") or "").strip()
    if not title:
        raise MissingRequiredField("title")
    template_name = (meta.get("layout") or "").strip()
    if not template_name:
        raise MissingRequiredField("layout")

    doc_type = resolve_type(meta, source)
    date = parse_date(meta)
    if doc_type is DocType.POST and date is None:
        raise MissingRequiredField("date")

    published = parse_bool(meta["published"]) if "published" in meta else True
    if parse_bool(meta.get("draft")):
        published = False

    return Document(
        id=resolve_id(meta, source, doc_type),
        type=doc_type,
        title=title,
        template_name=template_name,
        body=body,
        published=published,
        date=date,
        source=source,
        extra={key: value for key, value in meta.items() if key not in FIELD_KEYS},
    )


def discover_resources(root: Path) -> list[Path]:
    """Source files under ``root`` in lexical POSIX path order."""
    if not root.exists():
        return []
    paths = []
    for path in root.rglob("*"):
        rel = path.relative_to(root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.is_file() and path.suffix.lower() in SOURCE_SUFFIXES:
            paths.append(path)
    return sorted(paths, key=lambda p: p.relative_to(root).as_posix())


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match and not list_match.group("indent"):
            if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                out.append("")
        out.append(line)
    return "\n".join(out)


def count_words(text: str) -> int:
    text = html_lib.unescape(text)
    cjk_count = len(CJK_RE.findall(text))
    text = CJK_RE.sub(" ", text)
    word_count = len(WORD_RE.findall(text))
    return cjk_count + word_count
