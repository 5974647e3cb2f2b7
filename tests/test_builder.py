"""End-to-end tests for a full site build."""

import pytest

from folio.builder import build, load_store, run_parallel
from folio.config import SiteConfig
from folio.errors import DuplicateSlugCollision, MissingRequiredField, UnknownTemplate, UnreadableResource
from folio.models import BuildReport, DocType


def output_files(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


@pytest.fixture
def blog(write_source):
    write_source(
        "about.md",
        """
        ---
        title: About
        layout: page
        ---
        I write about Rails.
        """,
    )
    write_source(
        "_posts/2019-05-12-testing-graphql.md",
        """
        ---
        title: Testing GraphQL in Rails
        layout: post
        date: 2019-05-12 10:00:00 -0500
        categories: [rails, graphql]
        ---
        ## Setup

        ```ruby
        field :name, String, null: false
        ```
        """,
    )
    write_source(
        "_posts/2018-01-02-hello.md",
        """
        ---
        title: Hello
        layout: post
        date: 2018-01-02
        ---
        First post.
        """,
    )
    write_source(
        "_posts/2020-07-01-budget-app.md",
        """
        ---
        title: A Budgeting App Manifesto
        layout: post
        date: 2020-07-01
        published: false
        ---
        Not yet.
        """,
    )
    return write_source


class TestBuild:
    def test_writes_documents_and_collection_pages(self, blog, tmp_path):
        out = tmp_path / "out"

        report = build(blog.root, out)

        assert report.ok
        assert report.warnings == []
        assert report.documents_written == 3
        assert output_files(out) == [
            "about.html",
            "archive.html",
            "index.html",
            "pages.html",
            "posts/hello.html",
            "posts/testing-graphql.html",
        ]
        assert report.outputs == output_files(out)

    def test_index_lists_posts_newest_first(self, blog, tmp_path):
        out = tmp_path / "out"
        build(blog.root, out)

        index = (out / "index.html").read_text(encoding="utf-8")

        assert index.index("Testing GraphQL in Rails") < index.index("Hello")
        assert "Budgeting" not in index

    def test_unpublished_post_is_kept_in_store_but_not_written(self, blog, tmp_path):
        store = load_store(blog.root, 1, BuildReport())
        build(blog.root, tmp_path / "out")

        assert store.get("budget-app").published is False
        assert not (tmp_path / "out" / "posts" / "budget-app.html").exists()

    def test_feeds_and_sitemap_with_base_url(self, blog, tmp_path):
        out = tmp_path / "out"

        build(blog.root, out, SiteConfig(base_url="https://example.com/"))

        rss = (out / "rss.xml").read_text(encoding="utf-8")
        assert "<link>https://example.com/posts/testing-graphql.html</link>" in rss
        assert "<pubDate>Sun, 12 May 2019 15:00:00 +0000</pubDate>" in rss
        assert (out / "atom.xml").exists()
        sitemap = (out / "sitemap.xml").read_text(encoding="utf-8")
        assert "<loc>https://example.com/about.html</loc>" in sitemap

    def test_atom_without_posts_has_a_fixed_updated_date(self, write_source, tmp_path):
        write_source("about.md", "---\ntitle: About\nlayout: page\n---\nHi.\n")
        out = tmp_path / "out"

        build(write_source.root, out, SiteConfig(base_url="https://example.com"))

        atom = (out / "atom.xml").read_text(encoding="utf-8")
        assert "<updated>1970-01-01T00:00:00Z</updated>" in atom

    def test_rebuild_is_byte_identical(self, blog, tmp_path):
        out = tmp_path / "out"
        config = SiteConfig(base_url="https://example.com")

        build(blog.root, out, config)
        first = {path: (out / path).read_bytes() for path in output_files(out)}
        build(blog.root, out, config.override(build_workers=4))
        second = {path: (out / path).read_bytes() for path in output_files(out)}

        assert first == second

    def test_clean_removes_stale_files(self, blog, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "stale.html").write_text("old", encoding="utf-8")

        build(blog.root, out)

        assert not (out / "stale.html").exists()

    def test_static_files_are_copied(self, blog, tmp_path):
        static = tmp_path / "static"
        (static / "css").mkdir(parents=True)
        (static / "css" / "style.css").write_text("body {}", encoding="utf-8")
        out = tmp_path / "out"

        build(blog.root, out, SiteConfig(static_dir=static))

        assert (out / "css" / "style.css").read_text(encoding="utf-8") == "body {}"

    def test_refuses_to_clean_a_directory_holding_the_sources(self, blog, tmp_path):
        report = build(blog.root, tmp_path)

        assert not report.ok
        assert blog.root.exists()


class TestLastWins:
    def test_about_revisions_resolve_to_the_last_one(self, write_source, tmp_path):
        for version in ("v1", "v2", "v3"):
            write_source(
                f"about-{version}.md",
                f"""
                ---
                id: about
                title: About
                layout: page
                ---
                About {version}.
                """,
            )

        store = load_store(write_source.root, 1, BuildReport())
        report = build(write_source.root, tmp_path / "out")

        assert len(store) == 1
        assert store.get("about").body == "About v3."
        assert store.get("about").source == "about-v3.md"
        assert report.documents_written == 1
        assert "About v3." in (tmp_path / "out" / "about.html").read_text(encoding="utf-8")


class TestFailures:
    def test_post_without_date_is_skipped_with_one_warning(self, blog, tmp_path):
        blog(
            "_posts/undated.md",
            """
            ---
            title: Undated
            layout: post
            ---
            Body.
            """,
        )
        out = tmp_path / "out"

        report = build(blog.root, out)

        assert report.ok
        assert len(report.warnings) == 1
        warning = report.warnings[0]
        assert warning.document_id == "_posts/undated.md"
        assert isinstance(warning.error, MissingRequiredField)
        assert warning.error.field == "date"
        assert not (out / "posts" / "undated.html").exists()
        assert report.documents_written == 3

    def test_unknown_template_is_skipped_with_warning(self, blog, tmp_path):
        blog("colophon.md", "---\ntitle: Colophon\nlayout: default\n---\nMade by hand.\n")
        out = tmp_path / "out"

        report = build(blog.root, out)

        assert report.ok
        assert [issue.document_id for issue in report.warnings] == ["colophon"]
        assert isinstance(report.warnings[0].error, UnknownTemplate)
        assert not (out / "colophon.html").exists()
        assert (out / "about.html").exists()

    def test_missing_metadata_block_is_a_warning(self, blog, tmp_path):
        blog("readme.md", "Just text.\n")

        report = build(blog.root, tmp_path / "out")

        assert report.ok
        assert [issue.document_id for issue in report.warnings] == ["readme.md"]

    def test_output_path_collision_is_fatal_and_writes_nothing(self, blog, tmp_path):
        blog("Hello World.md", "---\ntitle: Hello\nlayout: page\n---\nOne.\n")
        blog("hello-world.md", "---\ntitle: Hello again\nlayout: page\n---\nTwo.\n")
        out = tmp_path / "out"

        report = build(blog.root, out)

        assert not report.ok
        assert isinstance(report.errors[0].error, DuplicateSlugCollision)
        assert report.documents_written == 0
        assert not out.exists()

    def test_collision_leaves_existing_output_untouched(self, blog, tmp_path):
        blog("archive.md", "---\ntitle: My archive\nlayout: page\n---\nMine.\n")
        out = tmp_path / "out"
        out.mkdir()
        (out / "keep.html").write_text("previous build", encoding="utf-8")

        report = build(blog.root, out)

        assert not report.ok
        assert report.errors[0].error.path == "archive.html"
        assert output_files(out) == ["keep.html"]

    def test_missing_source_directory_is_fatal(self, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "keep.html").write_text("previous build", encoding="utf-8")

        report = build(tmp_path / "no-such-dir", out)

        assert not report.ok
        assert "Source directory not found" in str(report.errors[0].error)
        assert output_files(out) == ["keep.html"]

    def test_undecodable_file_is_a_warning(self, blog, tmp_path):
        (blog.root / "latin1.md").write_bytes(b"---\ntitle: Caf\xe9\nlayout: page\n---\n")
        out = tmp_path / "out"

        report = build(blog.root, out)

        assert report.ok
        assert [issue.document_id for issue in report.warnings] == ["latin1.md"]
        assert isinstance(report.warnings[0].error, UnreadableResource)
        assert (out / "about.html").exists()

    def test_clean_keeps_static_directory_inside_output(self, blog, tmp_path):
        out = tmp_path / "out"
        static = out / "assets"
        static.mkdir(parents=True)
        (static / "style.css").write_text("body {}", encoding="utf-8")

        report = build(blog.root, out, SiteConfig(static_dir=static))

        assert not report.ok
        assert (static / "style.css").read_text(encoding="utf-8") == "body {}"


def test_run_parallel_keeps_order():
    assert run_parallel(lambda x: x * 2, range(20), workers=4) == [x * 2 for x in range(20)]
    assert run_parallel(str, [], workers=4) == []
