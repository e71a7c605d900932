"""Tests for per-package bundle generation."""

import json
from datetime import datetime, timezone

import pytest

from typespublisher.config import Options
from typespublisher.domain.operation import OperationStatus
from typespublisher.services.package_generator import (
    PackageGeneratorService,
    add_inferred_dependencies,
    create_metadata_json,
    create_package_json,
    create_readme,
    generate_not_needed_package,
    generate_package,
    patch_definition_file,
    version_string,
)
from typespublisher.typings import NotNeededPackage, TypingsData, Versions

NOW = datetime(2017, 4, 12, 18, 37, 53, tzinfo=timezone.utc)


@pytest.fixture
def options(tmp_path):
    return Options(output_dir=tmp_path / "output", logs_dir=tmp_path / "logs")


@pytest.fixture
def typings_root(tmp_path):
    root = tmp_path / "types" / "jquery"
    root.mkdir(parents=True)
    (root / "index.d.ts").write_text(
        '/// <reference path="../sizzle/index.d.ts" />\n'
        'declare const jQuery: JQueryStatic;\n'
    )
    return root


@pytest.fixture
def jquery(typings_root):
    return TypingsData(
        typings_package_name="jquery",
        library_name="jQuery",
        library_major_version=2,
        library_minor_version=0,
        project_name="http://jquery.com/",
        authors="Boris Yankov <https://github.com/borisyankov>",
        source_repo_url="https://www.github.com/DefinitelyTyped/DefinitelyTyped",
        kind="Global",
        library_dependencies=["sizzle"],
        module_dependencies=["http"],
        globals=["jQuery", "$"],
        files=["index.d.ts"],
        root=str(typings_root),
    )


@pytest.fixture
def available(jquery):
    sizzle = TypingsData(
        typings_package_name="sizzle",
        library_name="Sizzle",
        library_major_version=2,
        library_minor_version=3,
    )
    return {"jquery": jquery, "sizzle": sizzle}


class TestPatchDefinitionFile:
    def test_rewrites_relative_reference(self):
        assert patch_definition_file('/// <reference path="../jquery/index.d.ts" />') == \
            '/// <reference types="jquery" />'

    def test_leaves_local_reference(self):
        content = '/// <reference path="./helpers.d.ts" />'
        assert patch_definition_file(content) == content

    def test_rewrites_every_line(self):
        content = (
            '/// <reference path="../a/index.d.ts" />\n'
            'const x = 1;\n'
            '/// <reference path="../b/index.d.ts" />\n'
        )
        patched = patch_definition_file(content)
        assert '/// <reference types="a" />' in patched
        assert '/// <reference types="b" />' in patched


class TestPackageJson:
    def test_version_string(self, jquery):
        assert version_string(jquery, 4, Options()) == "2.0.4"
        assert version_string(jquery, 4, Options(prerelease_tag="alpha")) == "4-alpha"

    def test_infers_known_dependencies_only(self, jquery, available):
        dependencies = {}
        add_inferred_dependencies(dependencies, jquery, available, 4, Options())
        assert dependencies == {"@types/sizzle": "2.3.*"}

    def test_prerelease_dependencies_are_exact(self, jquery, available):
        dependencies = {}
        add_inferred_dependencies(dependencies, jquery, available, 4, Options(prerelease_tag="alpha"))
        assert dependencies == {"@types/sizzle": "2.3.4-alpha"}

    def test_declared_dependency_wins(self, jquery, available):
        dependencies = {"@types/sizzle": "1.0.0"}
        add_inferred_dependencies(dependencies, jquery, available, 4, Options())
        assert dependencies == {"@types/sizzle": "1.0.0"}

    def test_create_package_json(self, jquery, available):
        out = json.loads(create_package_json(jquery, 4, available, Options()))
        assert list(out) == [
            "name", "version", "description", "license", "author", "main",
            "repository", "scripts", "dependencies", "typings",
        ]
        assert out["name"] == "@types/jquery"
        assert out["version"] == "2.0.4"
        assert out["description"] == "TypeScript definitions for jQuery"
        assert out["repository"]["url"] == "https://www.github.com/DefinitelyTyped/DefinitelyTyped.git"
        assert out["typings"] == "index.d.ts"

    def test_partial_package_json_is_merged(self, jquery, available, typings_root):
        (typings_root / "package.json").write_text(json.dumps({
            "description": "Custom description",
            "dependencies": {"moment": "^2.0.0"},
        }))
        jquery.has_package_json = True

        out = json.loads(create_package_json(jquery, 4, available, Options()))

        assert out["description"] == "Custom description"
        assert out["dependencies"] == {"moment": "^2.0.0", "@types/sizzle": "2.3.*"}

    def test_unsupported_package_json_field(self, jquery, available, typings_root):
        (typings_root / "package.json").write_text(json.dumps({"scripts": {"test": "x"}}))
        jquery.has_package_json = True

        with pytest.raises(ValueError, match="Ignored field .*scripts"):
            create_package_json(jquery, 4, available, Options())


class TestReadmeAndMetadata:
    def test_readme(self, jquery):
        readme = create_readme(jquery, Options(), NOW)
        lines = readme.split("\r\n")

        assert lines[0] == "# Installation"
        assert lines[1] == "> `npm install --save @types/jquery`"
        assert "This package contains type definitions for jQuery (http://jquery.com/)." in lines
        assert " * Last updated: Wed, 12 Apr 2017 18:37:53 GMT" in lines
        assert " * Library Dependencies: sizzle" in lines
        assert " * Global values: jQuery, $" in lines
        assert "These definitions were written by Boris Yankov <https://github.com/borisyankov>." in lines
        assert "\n" not in readme.replace("\r\n", "")

    def test_readme_without_optional_parts(self):
        typing = TypingsData(typings_package_name="tiny", library_name="Tiny")
        readme = create_readme(typing, Options(), NOW)
        assert "This package contains type definitions for Tiny." in readme
        assert " * Module Dependencies: none" in readme
        assert "# Credits" not in readme

    def test_metadata_omits_root(self, jquery):
        metadata = json.loads(create_metadata_json(jquery))
        assert "root" not in metadata
        assert metadata["typingsPackageName"] == "jquery"
        assert metadata["libraryMajorVersion"] == 2


class TestGeneratePackage:
    def test_writes_bundle(self, jquery, available, options):
        versions = Versions({"jquery": {"lastVersion": 7}})

        result = generate_package(jquery, available, versions, options, NOW)

        out = options.output_dir / "jquery"
        assert result.status == OperationStatus.SUCCESS
        assert sorted(p.name for p in out.iterdir()) == [
            "README.md", "index.d.ts", "package.json", "types-metadata.json",
        ]
        assert json.loads((out / "package.json").read_text())["version"] == "2.0.7"
        assert (out / "index.d.ts").read_text().startswith('/// <reference types="sizzle" />')

    def test_clears_old_files(self, jquery, available, options):
        stale = options.output_dir / "jquery" / "old.d.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        generate_package(jquery, available, Versions(), options, NOW)

        assert not stale.exists()

    def test_nested_files(self, jquery, available, options, typings_root):
        (typings_root / "sub").mkdir()
        (typings_root / "sub" / "extra.d.ts").write_text("export {};\n")
        jquery.files = ["index.d.ts", "sub/extra.d.ts"]

        generate_package(jquery, available, Versions(), options, NOW)

        assert (options.output_dir / "jquery" / "sub" / "extra.d.ts").read_text() == "export {};\n"

    def test_not_needed_package(self, options):
        pkg = NotNeededPackage(
            typings_package_name="moment",
            library_name="Moment",
            source_repo_url="https://github.com/moment/moment",
        )

        result = generate_not_needed_package(pkg, options)

        out = options.output_dir / "moment"
        manifest = json.loads((out / "package.json").read_text())
        assert result.action == "generated_stub"
        assert manifest["version"] == "0.0.0"
        assert manifest["dependencies"] == {"moment": "*"}
        assert "typings" not in manifest
        assert "you don't need @types/moment installed" in (out / "README.md").read_text()


class TestPackageGeneratorService:
    def test_failures_do_not_stop_the_batch(self, jquery, options):
        broken = TypingsData(
            typings_package_name="broken",
            library_name="Broken",
            files=["missing.d.ts"],
            root=str(options.output_dir / "nowhere"),
        )
        retired = NotNeededPackage(typings_package_name="moment", library_name="Moment")
        service = PackageGeneratorService(options, now=lambda: NOW)

        messages = list(service.generate([broken, jquery], [retired], Versions()))

        summary = service.last_result
        assert summary.total == 3
        assert summary.successful == 2
        assert summary.failed == 1
        assert summary.errors[0].startswith("broken:")
        assert any(m.startswith("Error generating broken") for m in messages)
        assert (options.output_dir / "jquery" / "package.json").exists()
        assert (options.output_dir / "moment" / "package.json").exists()
