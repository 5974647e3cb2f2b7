from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Callable, Optional

import markdown

from .config import SiteConfig
from .content import count_words, normalize_list_spacing
from .errors import UnknownTemplate
from .indexer import output_path
from .models import DocType, Document, RenderContext
from .utils import display_date, join_url

BASE_TEMPLATE_PATH = Path(__file__).parent / "templates" / "base.html"
IMG_SRC_RE = re.compile(r'<img([^>]*?)src="([^"]+)"', re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

TemplateHandler = Callable[["TemplateRenderer", Document, RenderContext], str]


def fix_relative_img_src(html_text: str, root: str) -> str:
    def repl(match: re.Match) -> str:
        attrs = match.group(1)
        src = match.group(2)
        if src.startswith(("http://", "https://", "data:", "#", "/", "./", "../")):
            return match.group(0)
        return f'<img{attrs}src="{root}/{src}"'

    return IMG_SRC_RE.sub(repl, html_text)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def render_template(template: str, **context: str) -> str:
    # single pass: substituted text is never scanned for placeholders again
    def repl(match: re.Match) -> str:
        return context.get(match.group(1), match.group(0))

    return PLACEHOLDER_RE.sub(repl, template)


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def render_page(renderer: "TemplateRenderer", doc: Document, context: RenderContext) -> str:
    body_html, _ = renderer.convert(doc.body, context.root)
    return (
        '<article class="page">'
        f'<h1 class="page-title">{html.escape(doc.title)}</h1>'
        f'<div class="page-body">{body_html}</div>'
        "</article>"
    )


def render_post(renderer: "TemplateRenderer", doc: Document, context: RenderContext) -> str:
    root = context.root
    body_html, toc_html = renderer.convert(doc.body, root)
    word_count = count_words(strip_tags(body_html))
    tags = " ".join(f'<span class="chip">{html.escape(cat)}</span>' for cat in doc.categories)
    toc_block = ""
    if toc_html and "<li" in toc_html:
        toc_block = f'<nav class="post-toc"><h2>Contents</h2>{toc_html}</nav>'
    return (
        '<article class="post">'
        '<div class="post-meta"><div class="post-meta-left">'
        f'<span class="post-date">{renderer.format_date(doc)}</span>'
        f'<span class="post-words">{word_count} words</span>'
        "</div>"
        f'<div class="post-tags">{tags}</div></div>'
        f'<h1 class="post-title">{html.escape(doc.title)}</h1>'
        f"{toc_block}"
        f'<div class="post-body">{body_html}</div>'
        f"{renderer.post_navigation(doc, context)}"
        f"{renderer.post_footer(doc, context)}"
        "</article>"
    )


class FileTemplate:
    """A layout read from the templates directory.

    Supports ``{{title}}``, ``{{date}}``, ``{{toc}}``, ``{{content}}`` and
    ``{{footer}}``; the footer is only filled in for posts.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def __call__(self, renderer: "TemplateRenderer", doc: Document, context: RenderContext) -> str:
        body_html, toc_html = renderer.convert(doc.body, context.root)
        footer = ""
        if doc.type is DocType.POST:
            footer = renderer.post_navigation(doc, context) + renderer.post_footer(doc, context)
        return render_template(
            self.source,
            title=html.escape(doc.title),
            date=renderer.format_date(doc),
            toc=toc_html,
            footer=footer,
            content=body_html,
        )


class TemplateRenderer:
    def __init__(self, config: SiteConfig, base_template: Optional[str] = None) -> None:
        self.config = config
        self.base_template = base_template if base_template is not None else read_template(BASE_TEMPLATE_PATH)
        self._handlers: dict[str, TemplateHandler] = {
            "page": render_page,
            "post": render_post,
        }
        if config.templates_dir is not None:
            self.load_directory(config.templates_dir)

    def register(self, name: str, handler: TemplateHandler) -> None:
        self._handlers[name] = handler

    def has_template(self, name: str) -> bool:
        return name in self._handlers

    def load_directory(self, path: Path) -> None:
        if not path.is_dir():
            return
        for template_path in sorted(path.glob("*.html")):
            source = read_template(template_path)
            if template_path.stem == "base":
                self.base_template = source
            else:
                self.register(template_path.stem, FileTemplate(source))

    def convert(self, body: str, root: str) -> tuple[str, str]:
        extensions = ["fenced_code", "tables", "toc"]
        extension_configs = {"toc": {"toc_depth": self.config.toc_depth}}
        if self.config.highlight:
            extensions.append("codehilite")
            extension_configs["codehilite"] = {"guess_lang": False}
        md = markdown.Markdown(extensions=extensions, extension_configs=extension_configs)
        html_content = md.convert(normalize_list_spacing(body))
        toc_html = md.toc
        return fix_relative_img_src(html_content, root), toc_html

    def format_date(self, doc: Document) -> str:
        return display_date(doc.date) if doc.date else ""

    def post_navigation(self, doc: Document, context: RenderContext) -> str:
        newer, older = context.collection(DocType.POST).neighbours(doc.id)
        if newer is None and older is None:
            return ""
        links = []
        if newer is not None:
            links.append(
                f'<a class="post-newer" href="{context.root}/{output_path(newer)}">'
                f"Newer: {html.escape(newer.title)}</a>"
            )
        if older is not None:
            links.append(
                f'<a class="post-older" href="{context.root}/{output_path(older)}">'
                f"Older: {html.escape(older.title)}</a>"
            )
        return f'<nav class="post-nav">{"".join(links)}</nav>'

    def post_footer(self, doc: Document, context: RenderContext) -> str:
        items = [
            f'<li><a href="{html.escape(link.url, quote=True)}" rel="me">{html.escape(link.name)}</a></li>'
            for link in self.config.social_links
        ]
        permalink = ""
        if self.config.base_url:
            url = join_url(self.config.base_url, output_path(doc))
            permalink = f'<a class="permalink" href="{html.escape(url, quote=True)}">Permalink</a>'
        social = f'<ul class="social-links">{"".join(items)}</ul>' if items else ""
        return (
            '<footer class="post-footer">'
            f"{social}{permalink}"
            f'<a href="{context.root}/index.html">Back to home</a>'
            "</footer>"
        )

    def wrap(self, title: str, root: str, content: str, extra_head: str = "") -> str:
        return render_template(
            self.base_template,
            title=html.escape(title),
            root=root,
            site_name=html.escape(self.config.site_name),
            site_description=html.escape(self.config.site_description),
            extra_head=extra_head,
            content=content,
        )

    def render(self, doc: Document, context: RenderContext) -> str:
        handler = self._handlers.get(doc.template_name)
        if handler is None:
            raise UnknownTemplate(doc.template_name)
        content = handler(self, doc, context)
        return self.wrap(f"{doc.title} | {self.config.site_name}", context.root, content)
