from __future__ import annotations

import datetime as dt
import html
import math
from typing import Mapping

from .indexer import output_path
from .models import Collection, DocType, Document
from .render import TemplateRenderer, strip_tags
from .utils import display_date, iso_date, join_url, rfc822_date

SUMMARY_LENGTH = 200
ATOM_EPOCH = dt.datetime(1970, 1, 1)


def post_summary(renderer: TemplateRenderer, post: Document) -> str:
    summary = post.extra.get("summary") or post.extra.get("description")
    if summary:
        return str(summary)
    body_html, _ = renderer.convert(post.body, ".")
    text = strip_tags(body_html).strip().replace("\n", " ")
    return text[:SUMMARY_LENGTH] + ("..." if len(text) > SUMMARY_LENGTH else "")


def build_post_cards(renderer: TemplateRenderer, posts: list[Document], root: str) -> str:
    cards = []
    for post in posts:
        url = f"{root}/{output_path(post)}"
        tags = " ".join(f'<span class="chip">{html.escape(cat)}</span>' for cat in post.categories)
        cards.append(
            '<article class="post-card">'
            '<div class="post-meta">'
            f'<span class="post-date">{renderer.format_date(post)}</span>'
            f'<div class="post-tags">{tags}</div></div>'
            f'<h2 class="post-title"><a href="{url}">{html.escape(post.title)}</a></h2>'
            f'<p class="post-summary">{html.escape(post_summary(renderer, post))}</p>'
            f'<a class="post-more" href="{url}">Read more</a>'
            "</article>"
        )
    return "\n".join(cards)


def page_url(page: int) -> str:
    if page == 1:
        return "index.html"
    return f"page-{page}.html"


def build_pagination(page: int, total_pages: int) -> str:
    if total_pages <= 1:
        return ""
    items = []
    if page > 1:
        items.append(f'<a class="page-link" href="./{page_url(page - 1)}">Previous</a>')
    else:
        items.append('<span class="page-link is-disabled">Previous</span>')
    numbers = []
    for num in range(1, total_pages + 1):
        if num == page:
            numbers.append(f'<span class="page-number is-active">{num}</span>')
        else:
            numbers.append(f'<a class="page-number" href="./{page_url(num)}">{num}</a>')
    items.append(f'<div class="page-numbers">{"".join(numbers)}</div>')
    if page < total_pages:
        items.append(f'<a class="page-link" href="./{page_url(page + 1)}">Next</a>')
    else:
        items.append('<span class="page-link is-disabled">Next</span>')
    return f'<nav class="pagination">{"".join(items)}</nav>'


def build_index(renderer: TemplateRenderer, posts: Collection) -> dict[str, str]:
    root = "."
    site_name = renderer.config.site_name
    per_page = renderer.config.posts_per_page
    entries = list(posts)
    total_pages = max(1, math.ceil(len(entries) / per_page))
    outputs = {}
    for page in range(1, total_pages + 1):
        start = (page - 1) * per_page
        page_posts = entries[start : start + per_page]
        if page_posts:
            grid = build_post_cards(renderer, page_posts, root)
        else:
            grid = '<p class="post-empty">No posts yet.</p>'
        content = (
            '<div class="section-head">'
            "<h2>Latest posts</h2>"
            "</div>"
            f'<div class="post-grid">{grid}</div>'
            f"{build_pagination(page, total_pages)}"
        )
        title = f"{site_name} | Home" if page == 1 else f"{site_name} | Page {page}"
        outputs[page_url(page)] = renderer.wrap(title, root, content)
    return outputs


def build_archive(renderer: TemplateRenderer, posts: Collection) -> dict[str, str]:
    root = "."
    year_groups: dict[int, list[Document]] = {}
    for post in posts:
        year_groups.setdefault(post.date.year, []).append(post)

    sections = []
    for year, items in sorted(year_groups.items(), reverse=True):
        rows = []
        for item in items:
            rows.append(
                f'<li><span class="archive-date">{display_date(item.date)}</span>'
                f'<a href="{root}/{output_path(item)}">{html.escape(item.title)}</a></li>'
            )
        sections.append(
            f'<section class="archive-group"><h3>{year}</h3>'
            f'<span class="archive-count">{len(items)}</span>'
            f'<ul class="archive-list">{"".join(rows)}</ul></section>'
        )
    if not sections:
        sections.append('<p class="archive-empty">No posts yet.</p>')

    content = (
        '<div class="section-head">'
        "<h2>Archive</h2>"
        f"<p>Total {len(posts)} posts</p>"
        "</div>"
        f'{"".join(sections)}'
    )
    return {"archive.html": renderer.wrap(f"Archive | {renderer.config.site_name}", root, content)}


def build_page_list(renderer: TemplateRenderer, pages: Collection) -> dict[str, str]:
    root = "."
    rows = [
        f'<li><a href="{root}/{output_path(page)}">{html.escape(page.title)}</a></li>'
        for page in sorted(pages, key=lambda doc: (doc.title.lower(), doc.id))
    ]
    listing = f'<ul class="page-list">{"".join(rows)}</ul>' if rows else '<p class="page-empty">No pages yet.</p>'
    content = f'<div class="section-head"><h2>Pages</h2></div>{listing}'
    return {"pages.html": renderer.wrap(f"Pages | {renderer.config.site_name}", root, content)}


def build_rss(renderer: TemplateRenderer, posts: Collection) -> dict[str, str]:
    config = renderer.config
    site_url = config.base_url.rstrip("/")
    entries = list(posts)[: config.feed_limit]
    items = []
    for post in entries:
        link = join_url(site_url, output_path(post))
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(post.title)}</title>",
                    f"<link>{link}</link>",
                    f"<guid>{link}</guid>",
                    f"<pubDate>{rfc822_date(post.date)}</pubDate>",
                    f"<description>{html.escape(post_summary(renderer, post))}</description>",
                    "</item>",
                ]
            )
        )
    head = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0">',
        "<channel>",
        f"<title>{html.escape(config.site_name)}</title>",
        f"<link>{site_url}/</link>",
        f"<description>{html.escape(config.site_description)}</description>",
    ]
    if entries:
        head.append(f"<lastBuildDate>{rfc822_date(entries[0].date)}</lastBuildDate>")
    rss = "\n".join(head + items + ["</channel>", "</rss>"])
    return {"rss.xml": rss}


def build_atom(renderer: TemplateRenderer, posts: Collection) -> dict[str, str]:
    config = renderer.config
    site_url = config.base_url.rstrip("/")
    entries = []
    selected = list(posts)[: config.feed_limit]
    for post in selected:
        link = join_url(site_url, output_path(post))
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(post.title)}</title>",
                    f'<link href="{link}" />',
                    f"<id>{link}</id>",
                    f"<updated>{iso_date(post.date)}</updated>",
                    f"<summary>{html.escape(post_summary(renderer, post))}</summary>",
                    "</entry>",
                ]
            )
        )
    head = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<feed xmlns="http://www.w3.org/2005/Atom">',
        f"<title>{html.escape(config.site_name)}</title>",
        f"<id>{site_url}/</id>",
    ]
    updated = selected[0].date if selected else ATOM_EPOCH
    head.append(f"<updated>{iso_date(updated)}</updated>")
    head.extend([f'<link href="{site_url}/atom.xml" rel="self" />', f'<link href="{site_url}/" />'])
    return {"atom.xml": "\n".join(head + entries + ["</feed>"])}


def build_sitemap(
    renderer: TemplateRenderer, collections: Mapping[DocType, Collection], extra_paths: list[str]
) -> dict[str, str]:
    site_url = renderer.config.base_url.rstrip("/")
    urls = [(join_url(site_url, path), None) for path in sorted(extra_paths)]
    for doc_type in (DocType.PAGE, DocType.POST):
        for doc in collections.get(doc_type, ()):
            urls.append((join_url(site_url, output_path(doc)), doc.date))
    items = []
    for url, lastmod in urls:
        lines = ["<url>", f"<loc>{url}</loc>"]
        if lastmod:
            lines.append(f"<lastmod>{lastmod.date().isoformat()}</lastmod>")
        lines.append("</url>")
        items.append("\n".join(lines))
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            "\n".join(items),
            "</urlset>",
        ]
    )
    return {"sitemap.xml": sitemap}


def build_collection_pages(
    renderer: TemplateRenderer, collections: Mapping[DocType, Collection]
) -> dict[str, str]:
    """Listing pages and feeds for the public collections, keyed by output path."""
    config = renderer.config
    posts = collections.get(DocType.POST) or Collection("posts", DocType.POST)
    pages = collections.get(DocType.PAGE) or Collection("pages", DocType.PAGE)
    outputs: dict[str, str] = {}
    outputs.update(build_index(renderer, posts))
    outputs.update(build_archive(renderer, posts))
    outputs.update(build_page_list(renderer, pages))
    if config.base_url:
        if config.enable_rss:
            outputs.update(build_rss(renderer, posts))
        if config.enable_atom:
            outputs.update(build_atom(renderer, posts))
        if config.enable_sitemap:
            html_pages = [path for path in outputs if path.endswith(".html")]
            outputs.update(build_sitemap(renderer, collections, html_pages))
    return outputs
