"""Tests for build script variables and manifest parsing."""

import json

import pytest

from verwalker.crawl.parser import ManifestParseError, RecordParser, parse_build_vars

MAKEFILE = b"""\
NAME = widget
NODE_PREBUILT_VERSION=v0.10.26
NODE_PREBUILT_TAG = zone   # zone or gz
NODE_PREBUILT_IMAGE ?= fd2cc906-8938-11e3-beab-4359c665ac99

include ./tools/mk/Makefile.defs
"""


def _manifest(**fields) -> bytes:
    return json.dumps(fields).encode()


# ── parse_build_vars ────────────────────────────────────────────────


class TestParseBuildVars:
    def test_collects_assignments(self):
        assert parse_build_vars(MAKEFILE.decode()) == {
            "VERSION": "v0.10.26",
            "TAG": "zone",
            "IMAGE": "fd2cc906-8938-11e3-beab-4359c665ac99",
        }

    def test_first_occurrence_wins(self):
        text = "NODE_PREBUILT_VERSION=v0.8.28\nNODE_PREBUILT_VERSION=v0.10.26\n"
        assert parse_build_vars(text) == {"VERSION": "v0.8.28"}

    def test_ignores_other_variables(self):
        text = "NODE_VERSION=v1\n# NODE_PREBUILT_IMAGE=x\n"
        assert parse_build_vars(text) == {}

    def test_empty_first_assignment_wins(self):
        text = "NODE_PREBUILT_VERSION =\nNODE_PREBUILT_VERSION=v0.10.26\n"
        assert parse_build_vars(text) == {"VERSION": ""}


# ── RecordParser ────────────────────────────────────────────────────


class TestRecordParser:
    def test_full_record(self):
        record = RecordParser().parse(
            "acme/widget",
            _manifest(name="widget", version="1.4.0", dependencies={"lodash": "^4.17.0"}),
            build_script=MAKEFILE,
        )
        assert record.repository == "acme/widget"
        assert record.name == "widget"
        assert record.version == "1.4.0"
        assert record.dependencies == {"lodash": "^4.17.0"}
        assert record.node_version == "v0.10.26"
        assert record.base_image == "fd2cc906-8938-11e3-beab-4359c665ac99"
        assert record.dependents == set()

    def test_minimal_manifest(self):
        record = RecordParser().parse("acme/widget", _manifest(name="widget"))
        assert record.version is None
        assert record.dependencies == {}
        assert record.node_version is None
        assert record.base_image is None

    def test_empty_build_variable_leaves_field_unset(self):
        record = RecordParser().parse(
            "acme/widget",
            _manifest(name="widget"),
            build_script=b"NODE_PREBUILT_VERSION ?=\nNODE_PREBUILT_VERSION=v0.10.26\n",
        )
        assert record.node_version is None

    def test_submodules_overwrite_declared(self):
        record = RecordParser().parse(
            "acme/widget",
            _manifest(name="widget", dependencies={"libfoo": "1.0.0", "lodash": "4.0.0"}),
            submodule_deps={"libfoo": "https://github.com/acme/libfoo.git#5f3a9c"},
        )
        assert record.dependencies == {
            "libfoo": "https://github.com/acme/libfoo.git#5f3a9c",
            "lodash": "4.0.0",
        }

    def test_non_string_values_kept_as_text(self):
        record = RecordParser().parse(
            "acme/widget", _manifest(name="widget", version=2, dependencies={"x": 1})
        )
        assert record.version == "2"
        assert record.dependencies == {"x": "1"}

    @pytest.mark.parametrize(
        "manifest",
        [
            b"{not json",
            b"\xff\xfe",
            b'["widget"]',
            _manifest(version="1.0.0"),
            _manifest(name=""),
            _manifest(name="widget", dependencies=["lodash"]),
        ],
    )
    def test_unusable_manifest_raises(self, manifest):
        with pytest.raises(ManifestParseError, match="acme/widget"):
            RecordParser().parse("acme/widget", manifest)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            RecordParser().parse("acme/widget", b"")
