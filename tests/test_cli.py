"""Tests for the ``folio`` command line."""

import pytest

from folio.cli import main


@pytest.fixture
def site(write_source, tmp_path):
    write_source("about.md", "---\ntitle: About\nlayout: page\n---\nHi.\n")
    write_source("_posts/2019-05-12-hello.md", "---\ntitle: Hello\nlayout: post\ndate: 2019-05-12\n---\nPost.\n")
    return write_source


def test_build_succeeds(site, tmp_path, capsys):
    out = tmp_path / "out"

    code = main(["--config", str(tmp_path / "missing.toml"), "build", str(site.root), str(out)])

    assert code == 0
    captured = capsys.readouterr()
    assert f"Wrote 2 documents to {out}" in captured.out
    assert captured.err == ""
    assert (out / "posts" / "hello.html").exists()


def test_warnings_go_to_stderr(site, tmp_path, capsys):
    site("_posts/undated.md", "---\ntitle: Undated\nlayout: post\n---\n")

    code = main(["build", str(site.root), str(tmp_path / "out"), "--config", str(tmp_path / "missing.toml")])

    assert code == 0
    assert "warning: _posts/undated.md: missing required field: date" in capsys.readouterr().err


def test_collision_exits_non_zero(site, tmp_path, capsys):
    site("posts/hello.md", "---\ntitle: Clash\nlayout: page\ntype: page\nid: posts/hello\n---\n")
    out = tmp_path / "out"

    code = main(["build", str(site.root), str(out), "--config", str(tmp_path / "missing.toml")])

    assert code == 1
    err = capsys.readouterr().err
    assert "error:" in err
    assert "posts/hello.html" in err
    assert not out.exists()


def test_config_file_and_overrides(site, tmp_path):
    config = tmp_path / "site.yml"
    config.write_text("site_name: From Config\nbase_url: https://example.com\n")
    out = tmp_path / "out"

    code = main(
        ["--config", str(config), "build", str(site.root), str(out), "--site-name", "From Flag", "--no-clean"]
    )

    assert code == 0
    assert "From Flag" in (out / "index.html").read_text(encoding="utf-8")
    assert (out / "rss.xml").exists()


def test_bad_config_exits_non_zero(site, tmp_path, capsys):
    config = tmp_path / "site.json"
    config.write_text("{broken")

    code = main(["--config", str(config), "build", str(site.root), str(tmp_path / "out")])

    assert code == 1
    assert "Invalid JSON" in capsys.readouterr().err


def test_negative_feed_limit_is_clamped(site, tmp_path):
    site("_posts/2020-01-01-later.md", "---\ntitle: Later\nlayout: post\ndate: 2020-01-01\n---\nMore.\n")
    out = tmp_path / "out"

    code = main(
        [
            "build",
            str(site.root),
            str(out),
            "--config",
            str(tmp_path / "missing.toml"),
            "--base-url",
            "https://example.com",
            "--feed-limit",
            "-1",
        ]
    )

    assert code == 0
    assert "<item>" not in (out / "rss.xml").read_text(encoding="utf-8")
