"""Tests for .gitmodules parsing and submodule resolution."""

import logging

from verwalker.crawl.submodules import SubmoduleResolver, parse_gitmodules
from verwalker.crawl.tree_cache import TreeCache
from verwalker.vcs.models import Submodule

GITMODULES = """\
[submodule "deps/libfoo"]
	path = deps/libfoo
	url = https://github.com/acme/libfoo.git
# a comment
[submodule "tools"]
	path = tools
	url = git@github.com:acme/tools.git
"""


async def _root(provider, repo="acme/widget"):
    commit = await provider.get_branch_head(repo, "master")
    return await provider.get_commit_tree(repo, commit)


# ── parse_gitmodules ────────────────────────────────────────────────


class TestParseGitmodules:
    def test_parses_sections(self):
        assert parse_gitmodules(GITMODULES) == [
            Submodule(
                name="deps/libfoo",
                path="deps/libfoo",
                url="https://github.com/acme/libfoo.git",
            ),
            Submodule(name="tools", path="tools", url="git@github.com:acme/tools.git"),
        ]

    def test_empty_file(self):
        assert parse_gitmodules("") == []

    def test_section_without_url_skipped(self):
        text = '[submodule "half"]\n\tpath = half\n[submodule "ok"]\n\tpath = ok\n\turl = u\n'
        assert [s.name for s in parse_gitmodules(text)] == ["ok"]

    def test_other_sections_ignored(self):
        text = '[core]\n\tpath = nope\n\turl = nope\n[submodule "a"]\n\tpath = a\n\turl = u\n'
        assert [s.path for s in parse_gitmodules(text)] == ["a"]

    def test_extra_options_and_spacing(self):
        text = '[submodule "a"]\npath=vendor/a\nbranch = main\nURL = "https://x/a"\n'
        assert parse_gitmodules(text) == [Submodule(name="a", path="vendor/a", url="https://x/a")]


# ── SubmoduleResolver ───────────────────────────────────────────────


class TestSubmoduleResolver:
    async def test_resolves_pinned_commit(self, provider):
        provider.add_repo(
            "acme/widget",
            {"package.json": "{}"},
            gitlinks={"deps/libfoo": "5f3a9c"},
        )
        trees = TreeCache(provider, "acme/widget")
        subs = [Submodule(name="libfoo", path="deps/libfoo", url="U")]

        deps = await SubmoduleResolver().resolve(trees, await _root(provider), subs)
        assert deps == {"libfoo": "U#5f3a9c"}

    async def test_unresolvable_skipped(self, provider, caplog):
        provider.add_repo("acme/widget", {"package.json": "{}"}, gitlinks={"tools": "abc"})
        trees = TreeCache(provider, "acme/widget")
        subs = parse_gitmodules(GITMODULES)

        with caplog.at_level(logging.INFO):
            deps = await SubmoduleResolver().resolve(trees, await _root(provider), subs)

        assert deps == {"tools": "git@github.com:acme/tools.git#abc"}
        assert "deps/libfoo" in caplog.text

    async def test_directory_is_not_a_submodule(self, provider):
        provider.add_repo("acme/widget", {"deps/libfoo/README": "vendored copy"})
        trees = TreeCache(provider, "acme/widget")
        subs = [Submodule(name="libfoo", path="deps/libfoo", url="U")]

        assert await SubmoduleResolver().resolve(trees, await _root(provider), subs) == {}

    async def test_shares_tree_listings(self, provider):
        provider.add_repo(
            "acme/widget",
            {"deps/README": "x"},
            gitlinks={"deps/a": "s1", "deps/b": "s2"},
        )
        trees = TreeCache(provider, "acme/widget")
        subs = [
            Submodule(name="a", path="deps/a", url="A"),
            Submodule(name="b", path="deps/b", url="B"),
        ]

        deps = await SubmoduleResolver().resolve(trees, await _root(provider), subs)
        assert deps == {"a": "A#s1", "b": "B#s2"}
        # root + deps, each listed once
        assert provider.count("get_tree") == 2
