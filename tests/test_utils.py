"""
Unit tests for typespublisher.utils and the file writer
"""
import os
import shutil
import tempfile
import unittest
from pathlib import Path

from typespublisher.exit_codes import DirectoryMismatch
from typespublisher.infra.file_writer import empty_dir, read_json, write_file, write_json
from typespublisher.utils import assert_directories_equal, compare_directories


def make_tree(root: Path, files: dict) -> Path:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


class TestCompareDirectories(unittest.TestCase):
    """Test recursive directory comparison"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.files = {
            "package.json": '{"version": "1.0.0"}',
            "README.md": "# readme\n",
            "lib/index.d.ts": "declare const x: number;\n",
        }

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_equal_trees(self):
        a = make_tree(self.temp_dir / "a", self.files)
        b = make_tree(self.temp_dir / "b", self.files)
        self.assertEqual(compare_directories(a, b), [])
        assert_directories_equal(a, b)

    def test_changed_file_is_reported_as_diff(self):
        a = make_tree(self.temp_dir / "a", self.files)
        b = make_tree(self.temp_dir / "b", {**self.files, "lib/index.d.ts": "declare const x: string;\n"})

        with self.assertRaises(DirectoryMismatch) as ctx:
            assert_directories_equal(a, b)

        report = ctx.exception.report
        self.assertIn("-declare const x: number;", report)
        self.assertIn("+declare const x: string;", report)

    def test_ignored_names_are_skipped(self):
        a = make_tree(self.temp_dir / "a", self.files)
        b = make_tree(self.temp_dir / "b", {**self.files, "package.json": '{"version": "2.0.0"}'})

        with self.assertRaises(DirectoryMismatch):
            assert_directories_equal(a, b)
        assert_directories_equal(a, b, ignore=lambda name: name == "package.json")

    def test_ignored_name_may_be_missing(self):
        a = make_tree(self.temp_dir / "a", self.files)
        files = dict(self.files)
        del files["package.json"]
        b = make_tree(self.temp_dir / "b", files)
        assert_directories_equal(a, b, ignore=lambda name: name == "package.json")

    def test_extra_file_is_reported(self):
        a = make_tree(self.temp_dir / "a", self.files)
        b = make_tree(self.temp_dir / "b", {**self.files, "extra.txt": "surprise"})

        problems = compare_directories(a, b)
        self.assertEqual(len(problems), 1)
        self.assertIn("+extra.txt", problems[0])

    def test_missing_nested_file_is_reported(self):
        a = make_tree(self.temp_dir / "a", {**self.files, "lib/other.d.ts": "x"})
        b = make_tree(self.temp_dir / "b", self.files)
        problems = compare_directories(a, b)
        self.assertEqual(len(problems), 1)
        self.assertIn("-other.d.ts", problems[0])

    def test_file_versus_directory(self):
        a = make_tree(self.temp_dir / "a", {"thing": "file"})
        b = make_tree(self.temp_dir / "b", {"thing/inner": "file"})
        problems = compare_directories(a, b)
        self.assertEqual(len(problems), 1)
        self.assertIn("not both directories", problems[0])

    def test_line_endings_matter(self):
        a = make_tree(self.temp_dir / "a", {"README.md": b"a\r\nb"})
        b = make_tree(self.temp_dir / "b", {"README.md": b"a\nb"})
        problems = compare_directories(a, b)
        self.assertEqual(len(problems), 1)

    def test_binary_files(self):
        a = make_tree(self.temp_dir / "a", {"blob": b"\xff\xfe\x00"})
        b = make_tree(self.temp_dir / "b", {"blob": b"\xff\xfe\x01"})
        problems = compare_directories(a, b)
        self.assertIn("Binary files", problems[0])

    def test_missing_actual_directory(self):
        a = make_tree(self.temp_dir / "a", self.files)
        problems = compare_directories(a, self.temp_dir / "nope")
        self.assertIn("Missing directory", problems[0])


class TestFileWriter(unittest.TestCase):
    """Test file output helpers"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_write_file_creates_parents(self):
        path = self.temp_dir / "a" / "b" / "c.txt"
        write_file(path, "hello")
        self.assertEqual(path.read_text(), "hello")

    def test_write_file_keeps_line_endings(self):
        path = self.temp_dir / "README.md"
        write_file(path, "one\r\ntwo")
        self.assertEqual(path.read_bytes(), b"one\r\ntwo")

    def test_write_file_leaves_no_temp_files(self):
        write_file(self.temp_dir / "x.txt", "x")
        self.assertEqual(os.listdir(self.temp_dir), ["x.txt"])

    def test_write_and_read_json(self):
        path = self.temp_dir / "data.json"
        write_json(path, {"name": "types-registry", "keywords": ["a"]})
        self.assertEqual(read_json(path), {"name": "types-registry", "keywords": ["a"]})
        self.assertIn('    "name"', path.read_text())

    def test_empty_dir_creates(self):
        target = self.temp_dir / "new" / "dir"
        empty_dir(target)
        self.assertTrue(target.is_dir())
        self.assertEqual(list(target.iterdir()), [])

    def test_empty_dir_clears(self):
        target = make_tree(self.temp_dir / "out", {"a.txt": "a", "sub/b.txt": "b"})
        empty_dir(target)
        self.assertTrue(target.is_dir())
        self.assertEqual(list(target.iterdir()), [])


if __name__ == '__main__':
    unittest.main()
