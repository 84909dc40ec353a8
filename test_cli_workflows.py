from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict

from brzip.reader import ArchiveReader


def _random_bytes(size: int) -> bytes:
    return os.urandom(size)


def _build_fixture_tree(root: Path) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    (root / "docs" / "notes").mkdir(parents=True)
    content = b"hello world\n" * 20
    (root / "docs" / "readme.txt").write_bytes(content)
    files["docs/readme.txt"] = content

    bin_data = _random_bytes(200_000)
    (root / "docs" / "notes" / "binary.bin").write_bytes(bin_data)
    files["docs/notes/binary.bin"] = bin_data

    (root / "docs" / "notes" / "empty.txt").write_bytes(b"")
    files["docs/notes/empty.txt"] = b""
    return files


def _compare_trees(expected: Dict[str, bytes], dst: Path):
    found = {}
    for root, _dirs, files in os.walk(dst):
        for fn in files:
            full = Path(root) / fn
            found[full.relative_to(dst).as_posix()] = full.read_bytes()
    assert found == expected, f"Extracted tree differs: {sorted(found)} != {sorted(expected)}"


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "brzip.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def test_directory_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            src = root / "src"
            files = _build_fixture_tree(src)
            archive = root / "archive.brzip"

            proc = self.run_cli(["compress", str(src), str(archive)])
            self.assertIn("was added", proc.stdout)
            self.assertIn("Done: 3 file(s)", proc.stdout)

            with ArchiveReader(str(archive)) as r:
                self.assertEqual(sorted(files), sorted(r.entries))

            out = root / "out"
            proc = self.run_cli(["decompress", str(archive), str(out)])
            self.assertIn("Archive has 3 entrie(s).", proc.stdout)
            self.assertIn("Written docs/readme.txt", proc.stdout)
            _compare_trees(files, out)

    def test_single_file_default_names(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "data.txt").write_bytes(b"alpha" * 100)
            self.run_cli(["compress", "data.txt"], cwd=root)
            archive = root / "data.brzip"
            self.assertTrue(archive.exists())

            self.run_cli(["decompress", "data.brzip"], cwd=root)
            self.assertEqual(b"alpha" * 100, (root / "data" / "data.txt").read_bytes())

    def test_listonly_and_list(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            src = root / "src"
            _build_fixture_tree(src)
            archive = root / "a.brzip"
            self.run_cli(["compress", str(src), str(archive), "--quiet"])

            out = root / "never"
            for flag in ("--listonly", "/listonly"):
                with self.subTest(flag=flag):
                    proc = self.run_cli(["decompress", str(archive), str(out), flag])
                    lines = proc.stdout.splitlines()
                    self.assertIn("docs/readme.txt", lines)
                    self.assertIn("docs/notes/binary.bin", lines)
                    self.assertFalse(out.exists())

            proc = self.run_cli(["list", str(archive)])
            rows = [line.split("\t") for line in proc.stdout.splitlines()]
            sizes = {name: int(length) for length, _compressed, name in rows}
            self.assertEqual(200_000, sizes["docs/notes/binary.bin"])
            self.assertEqual(0, sizes["docs/notes/empty.txt"])

    def test_append_and_deflate(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "one.txt").write_bytes(b"1" * 1000)
            (root / "two.txt").write_bytes(b"2" * 1000)
            archive = root / "x.brzip"
            self.run_cli(["compress", str(root / "one.txt"), str(archive), "--codec", "deflate"])
            self.run_cli(["compress", str(root / "two.txt"), str(archive), "--codec", "deflate", "--append"])
            out = root / "out"
            self.run_cli(["decompress", str(archive), str(out), "--codec", "deflate"])
            self.assertEqual(b"1" * 1000, (out / "one.txt").read_bytes())
            self.assertEqual(b"2" * 1000, (out / "two.txt").read_bytes())

    def test_append_to_missing_archive_creates_it(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "one.txt").write_bytes(b"1" * 100)
            archive = root / "fresh.brzip"
            self.run_cli(["compress", str(root / "one.txt"), str(archive), "--append"])
            with ArchiveReader(str(archive)) as r:
                self.assertEqual(["one.txt"], list(r.entries))

    def test_invalid_archive_reports_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            bogus = root / "bogus.brzip"
            bogus.write_bytes(b"definitely not an archive")
            proc = self.run_cli(["decompress", str(bogus), str(root / "out")], expect=2)
            self.assertIn("not a valid .brzip archive", proc.stderr)

            proc = self.run_cli(["compress", str(root / "missing")], expect=2)
            self.assertIn("Error:", proc.stderr)

    def test_truncated_archive_reports_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "f.bin").write_bytes(_random_bytes(5000))
            archive = root / "t.brzip"
            self.run_cli(["compress", str(root / "f.bin"), str(archive)])
            archive.write_bytes(archive.read_bytes()[:-1])
            proc = self.run_cli(["list", str(archive)], expect=2)
            self.assertIn("Error:", proc.stderr)


if __name__ == "__main__":
    unittest.main()
