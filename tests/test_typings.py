"""Tests for the typings data source."""

import json

import pytest

from typespublisher.typings import (
    NotNeededPackage,
    TypingsData,
    Versions,
    read_not_needed_packages,
    read_typings,
)


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "typesData.json").write_text(json.dumps({
        "node": {
            "typingsPackageName": "node",
            "libraryName": "Node.js",
            "libraryMajorVersion": 7,
            "libraryMinorVersion": 0,
            "files": ["index.d.ts"],
            "root": "/types/node",
        },
        "jquery": {
            "typingsPackageName": "jquery",
            "libraryName": "jQuery",
            "libraryMajorVersion": "2",
            "hasPackageJson": True,
            "libraryDependencies": ["sizzle"],
        },
    }))
    return tmp_path


class TestTypingsData:
    def test_from_dict_defaults(self):
        typing = TypingsData.from_dict({"typingsPackageName": "tiny"})
        assert typing.name == "tiny"
        assert typing.library_name == "tiny"
        assert typing.definition_filename == "index.d.ts"
        assert typing.files == []

    def test_to_dict_round_trip(self):
        record = {"typingsPackageName": "node", "libraryName": "Node.js", "globals": ["process"]}
        typing = TypingsData.from_dict(record)
        assert TypingsData.from_dict(typing.to_dict()) == typing


class TestReaders:
    def test_read_typings_sorted_by_name(self, data_dir):
        typings = read_typings(data_dir)
        assert [t.name for t in typings] == ["jquery", "node"]
        assert typings[0].library_major_version == 2
        assert typings[0].has_package_json
        assert typings[1].root == "/types/node"

    def test_read_typings_requires_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_typings(tmp_path)

    def test_not_needed_packages(self, tmp_path):
        (tmp_path / "notNeededPackages.json").write_text(json.dumps({"packages": [
            {"typingsPackageName": "moment", "libraryName": "Moment", "sourceRepoURL": "https://github.com/moment/moment"},
        ]}))
        assert read_not_needed_packages(tmp_path) == [
            NotNeededPackage("moment", "Moment", "https://github.com/moment/moment"),
        ]

    def test_not_needed_packages_optional(self, tmp_path):
        assert read_not_needed_packages(tmp_path) == []


class TestVersions:
    def test_known_and_unknown(self, tmp_path):
        (tmp_path / "versions.json").write_text(json.dumps({"node": {"lastVersion": 12}}))
        versions = Versions.load(tmp_path)
        assert versions.get_version(TypingsData("node", "Node.js")) == 12
        assert versions.get_version(TypingsData("jquery", "jQuery")) == 0

    def test_missing_file(self, tmp_path):
        assert Versions.load(tmp_path).get_version(TypingsData("node", "Node.js")) == 0
