"""End-to-end hashing passes over small build directories.

These tests exercise the HashEngine together with the scanner, resolver,
rewriter, dependency graph and checksum cache on real files.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from assethash.core.engine import HashEngine, MissingReferenceError, asset_hash, asset_hash_sync
from assethash.core.hasher import ChecksumService
from assethash.models.options import ConfigurationError, HashOptions

CHAIN = {
    "a.html": '<a href="./b.html">B</a>\n',
    "b.html": '<link rel="stylesheet" href="./c.css">\n',
    "c.css": "X",
}

CYCLE = {
    "p.html": '<p>P body</p><a href="./q.html">Q</a>\n',
    "q.html": '<p>Q body</p><a href="./p.html">P</a>\n',
}


class TestChain:
    """a.html -> b.html -> c.css"""

    def test_leaf_first_then_dependents(self, make_site, make_options, checksum, read, key):
        site = make_site(CHAIN)
        report = asset_hash_sync(make_options(site))

        c_id = checksum("X")
        b_final = f'<link rel="stylesheet" href="./c.css?v={c_id}">\n'
        b_id = checksum(b_final)
        a_final = f'<a href="./b.html?v={b_id}">B</a>\n'

        assert read(site, "b.html") == b_final
        assert read(site, "a.html") == a_final
        assert read(site, "c.css") == "X"
        assert report.checksums[key(site, "b.html")] == b_id
        assert report.checksums[key(site, "a.html")] == checksum(a_final)
        assert [unit.members for unit in report.units] == [
            (key(site, "b.html"),),
            (key(site, "a.html"),),
        ]

    def test_stable_across_runs(self, make_site, make_options):
        first = make_site(CHAIN, root="first")
        second = make_site(CHAIN, root="second")
        one = asset_hash_sync(make_options(first))
        two = asset_hash_sync(make_options(second))
        assert [u.checksum for u in one.units] == [u.checksum for u in two.units]

    def test_leaf_change_propagates(self, make_site, make_options, read):
        before = make_site(CHAIN, root="before")
        after = make_site({**CHAIN, "c.css": "Y"}, root="after")
        one = asset_hash_sync(make_options(before))
        two = asset_hash_sync(make_options(after))
        ids_one = [u.checksum for u in one.units]
        ids_two = [u.checksum for u in two.units]
        assert ids_one[0] != ids_two[0]  # b.html
        assert ids_one[1] != ids_two[1]  # a.html
        assert read(before, "b.html") != read(after, "b.html")


class TestCycles:
    def test_mutual_references_share_identifier(
        self, make_site, make_options, checksum, read, key
    ):
        site = make_site(CYCLE)
        report = asset_hash_sync(make_options(site))

        shared = checksum(CYCLE["p.html"] + CYCLE["q.html"])
        assert report.checksums[key(site, "p.html")] == shared
        assert report.checksums[key(site, "q.html")] == shared
        assert read(site, "p.html") == f'<p>P body</p><a href="./q.html?v={shared}">Q</a>\n'
        assert read(site, "q.html") == f'<p>Q body</p><a href="./p.html?v={shared}">P</a>\n'
        assert report.cycle_count == 1

    def test_change_in_one_member_changes_both(self, make_site, make_options):
        before = make_site(CYCLE, root="before")
        after = make_site(
            {**CYCLE, "p.html": CYCLE["p.html"].replace("P body", "P edited")},
            root="after",
        )
        one = asset_hash_sync(make_options(before))
        two = asset_hash_sync(make_options(after))
        assert len(set(one.checksums.values())) == 1
        assert len(set(two.checksums.values())) == 1
        assert set(one.checksums.values()) != set(two.checksums.values())

    def test_external_dependency_hashed_before_combining(
        self, make_site, make_options, checksum, read
    ):
        site = make_site(
            {
                "p.html": '<link href="/style.css"><a href="./q.html">Q</a>',
                "q.html": '<a href="./p.html">P</a>',
                "style.css": "body{}",
            }
        )
        asset_hash_sync(make_options(site))

        style_id = checksum("body{}")
        p_phase_a = f'<link href="/style.css?v={style_id}"><a href="./q.html">Q</a>'
        shared = checksum(p_phase_a + '<a href="./p.html">P</a>')
        assert read(site, "p.html") == (
            f'<link href="/style.css?v={style_id}"><a href="./q.html?v={shared}">Q</a>'
        )
        assert read(site, "q.html") == f'<a href="./p.html?v={shared}">P</a>'

    def test_cycle_does_not_absorb_plain_dependency(self, make_site, make_options, key):
        site = make_site(
            {
                "b.html": '<a href="./c.html">C</a>',
                "c.html": '<a href="./b.html">B</a><a href="./d.html">D</a>',
                "d.html": "<p>D</p>",
            }
        )
        report = asset_hash_sync(make_options(site))
        assert [unit.members for unit in report.units] == [
            (key(site, "d.html"),),
            (key(site, "b.html"), key(site, "c.html")),
        ]
        assert report.checksums[key(site, "d.html")] != report.checksums[key(site, "b.html")]

    def test_self_reference(self, make_site, make_options, checksum, read):
        content = '<a href="./self.html">top</a>'
        site = make_site({"self.html": content})
        report = asset_hash_sync(make_options(site))
        own = checksum(content)
        assert read(site, "self.html") == f'<a href="./self.html?v={own}">top</a>'
        assert report.units[0].checksum == own
        assert report.units[0].self_referencing is True
        assert report.cycle_count == 1


class TestRewriting:
    def test_no_references_not_written(self, make_site, make_options, read, key):
        site = make_site({"plain.html": "<p>Nothing here.</p>"})
        report = asset_hash_sync(make_options(site))
        assert report.written == []
        assert read(site, "plain.html") == "<p>Nothing here.</p>"
        assert key(site, "plain.html") in report.checksums

    def test_query_merging(self, make_site, make_options, checksum, read):
        site = make_site(
            {
                "index.html": '<script src="/app.js?x=1"></script><script src="/app.js"></script>',
                "app.js": "run()",
            }
        )
        asset_hash_sync(make_options(site))
        app_id = checksum("run()")
        assert read(site, "index.html") == (
            f'<script src="/app.js?v={app_id}&x=1"></script>'
            f'<script src="/app.js?v={app_id}"></script>'
        )

    def test_param_and_max_length(self, make_site, make_options, checksum, read):
        site = make_site({"index.html": '<link href="/s.css">', "s.css": "s"})
        asset_hash_sync(make_options(site, param="rev", max_length=8))
        assert read(site, "index.html") == f'<link href="/s.css?rev={checksum("s")[:8]}">'

    def test_custom_checksum_function(self, make_site, make_options, read):
        site = make_site({"index.html": '<link href="/s.css">', "s.css": "s"})
        asset_hash_sync(make_options(site, compute_checksum=lambda data: f"n{len(data)}"))
        assert read(site, "index.html") == '<link href="/s.css?v=n1">'

    def test_nested_directories_and_prefix(self, make_site, make_options, checksum, read):
        site = make_site(
            {
                "blog/post.html": '<link href="/blog/css/a.css"><link href="../css/a.css">',
                "css/a.css": "a",
            }
        )
        asset_hash_sync(make_options(site, path_prefix="/blog/"))
        a_id = checksum("a")
        assert read(site, "blog/post.html") == (
            f'<link href="/blog/css/a.css?v={a_id}"><link href="../css/a.css?v={a_id}">'
        )

    def test_non_matching_assets_untouched(self, make_site, make_options, read):
        content = '<img src="/logo.png"><a href="https://example.com/x.css">x</a>'
        site = make_site({"index.html": content, "logo.png": "png"})
        asset_hash_sync(make_options(site))
        assert read(site, "index.html") == content

    def test_line_endings_preserved(self, make_site, make_options, checksum):
        site = make_site({"s.css": "s"})
        (site / "index.html").write_bytes(b'<link href="/s.css">\r\n<p>x</p>\r\n')
        asset_hash_sync(make_options(site))
        expected = f'<link href="/s.css?v={checksum("s")}">\r\n<p>x</p>\r\n'.encode()
        assert (site / "index.html").read_bytes() == expected

    def test_dry_run_writes_nothing(self, make_site, make_options, read, key):
        site = make_site(CHAIN)
        report = asset_hash_sync(make_options(site), dry_run=True)
        assert report.dry_run is True
        assert report.written == []
        assert read(site, "a.html") == CHAIN["a.html"]
        assert key(site, "a.html") in report.checksums


class TestMissingReferences:
    FILES = {
        "index.html": '<link href="/ok.css"><link href="/gone.css">',
        "other.html": '<script src="./ok.js"></script>',
        "ok.css": "ok",
        "ok.js": "ok",
    }

    def test_ignore_leaves_reference_unrewritten(self, make_site, make_options, checksum, read):
        site = make_site(self.FILES)
        report = asset_hash_sync(make_options(site))
        assert read(site, "index.html") == (
            f'<link href="/ok.css?v={checksum("ok")}"><link href="/gone.css">'
        )
        assert [m.text for m in report.missing] == ["/gone.css"]

    def test_warn_logs_reference_and_file(self, make_site, make_options, caplog):
        site = make_site(self.FILES)
        with caplog.at_level(logging.WARNING, logger="assethash.core.engine"):
            asset_hash_sync(make_options(site, on_missing="warn"))
        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "/gone.css" in warnings[0]
        assert "index.html" in warnings[0]

    def test_error_aborts_before_any_write(self, make_site, make_options, read):
        site = make_site(self.FILES)
        with pytest.raises(MissingReferenceError) as excinfo:
            asset_hash_sync(make_options(site, on_missing="error"))
        assert [m.text for m in excinfo.value.missing] == ["/gone.css"]
        assert "index.html" in str(excinfo.value)
        assert read(site, "index.html") == self.FILES["index.html"]
        assert read(site, "other.html") == self.FILES["other.html"]

    def test_unreadable_asset_is_missing(
        self, make_site, make_options, read, monkeypatch: pytest.MonkeyPatch
    ):
        site = make_site(self.FILES)
        original = ChecksumService.digest_file

        async def flaky(self, path: Path):
            if path.name == "ok.js":
                return None
            return await original(self, path)

        monkeypatch.setattr(ChecksumService, "digest_file", flaky)
        report = asset_hash_sync(make_options(site, on_missing="warn"))
        assert read(site, "other.html") == self.FILES["other.html"]
        assert [(m.text, m.reason) for m in report.missing] == [
            ("/gone.css", "missing"),
            ("./ok.js", "unreadable"),
        ]

    def test_unreadable_asset_under_error_policy_writes_nothing(
        self, make_site, make_options, read, monkeypatch: pytest.MonkeyPatch
    ):
        site = make_site({k: v for k, v in self.FILES.items() if k != "index.html"})

        async def unreadable(self, path: Path):
            return None

        monkeypatch.setattr(ChecksumService, "digest_file", unreadable)
        with pytest.raises(MissingReferenceError):
            asset_hash_sync(make_options(site, on_missing="error"))
        assert read(site, "other.html") == self.FILES["other.html"]

    def test_undecodable_document_skipped(self, make_site, make_options, key):
        site = make_site({"ok.html": "<p>ok</p>"})
        (site / "bad.html").write_bytes(b"\xff\xfe\xfa")
        report = asset_hash_sync(make_options(site))
        assert key(site, "bad.html") not in report.checksums
        assert key(site, "ok.html") in report.checksums


class TestEntryPoints:
    @pytest.mark.asyncio
    async def test_async_entry_point_with_keywords(self, make_site, checksum, read):
        site = make_site({"index.html": '<link href="/s.css">', "s.css": "s"})
        report = await asset_hash(directory=site, param="h")
        assert read(site, "index.html") == f'<link href="/s.css?h={checksum("s")}">'
        assert report.document_count == 1

    def test_keywords_validated(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            asset_hash_sync(directory=tmp_path / "missing")

    @pytest.mark.asyncio
    async def test_engine_is_reusable(self, make_site):
        site = make_site({"index.html": "<p>x</p>"})
        engine = HashEngine(HashOptions(directory=site))
        first = await engine.run(dry_run=True)
        second = await engine.run(dry_run=True)
        assert first.checksums == second.checksums
