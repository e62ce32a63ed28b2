#!/usr/bin/env python
from __future__ import annotations
import gzip
import io
import os
import pytest # type: ignore
from distinction.distinction import (
    count_elements,
    iter_elements,
    main,
    parse_args,
)

TEST_LINES = """alice
bob
alice

carol
bob
"""

TEST_TSV = """u1\tlogin\t2024-01-01
u2\tlogin\t2024-01-01
u1\tlogout\t2024-01-02
u3\tlogin\t2024-01-02
"""

@pytest.fixture
def lines_file(tmp_path):
    path = tmp_path / "users.txt"
    path.write_text(TEST_LINES)
    return str(path)

@pytest.mark.quick
class TestCliQuick:
    """Quick tests for the distinction command line."""

    def test_parse_args_defaults(self):
        """Test default configuration."""
        args = parse_args([])
        assert args.files == ["-"]
        assert args.eps == 0.1
        assert args.delta == 0.005
        assert args.seed is None
        assert args.field is None
        assert args.sep == "\t"

    def test_count_elements_skips_blank_lines(self):
        handle = io.StringIO(TEST_LINES)
        assert count_elements(handle) == 5
        assert handle.read() == TEST_LINES

    def test_iter_elements(self):
        """Test line and field extraction."""
        assert list(iter_elements(io.StringIO(TEST_LINES))) == [
            "alice", "bob", "alice", "carol", "bob"]
        assert list(iter_elements(io.StringIO(TEST_TSV), field=1)) == [
            "login", "login", "logout", "login"]

    def test_iter_elements_missing_field(self):
        with pytest.raises(ValueError):
            list(iter_elements(io.StringIO("a\tb\n"), field=2))

    def test_main_single_file(self, lines_file, capsys):
        """Test estimating one file."""
        main([lines_file, "--seed", "42"])
        out = capsys.readouterr().out
        assert out == f"{lines_file}\t3\n"

    def test_main_field(self, tmp_path, capsys):
        """Test counting one column."""
        path = tmp_path / "events.tsv"
        path.write_text(TEST_TSV)
        main([str(path), "-f", "0", "--seed", "1"])
        assert capsys.readouterr().out.strip().endswith("\t3")

    def test_main_separator(self, tmp_path, capsys):
        path = tmp_path / "events.csv"
        path.write_text(TEST_TSV.replace("\t", ","))
        main([str(path), "-f", "2", "--sep", ",", "--seed", "1"])
        assert capsys.readouterr().out.strip().endswith("\t2")

    def test_main_gzip(self, tmp_path, capsys):
        """Test reading a gzipped file."""
        path = tmp_path / "users.txt.gz"
        with gzip.open(path, "wt") as f:
            f.write(TEST_LINES)
        main([str(path), "--seed", "3"])
        assert capsys.readouterr().out == f"{path}\t3\n"

    def test_main_stdin(self, monkeypatch, capsys):
        """Test reading stdin when no file is given."""
        monkeypatch.setattr("sys.stdin", io.StringIO(TEST_LINES))
        main(["--seed", "5"])
        assert capsys.readouterr().out == "-\t3\n"

    def test_main_multiple_files(self, lines_file, tmp_path, capsys):
        other = tmp_path / "more.txt"
        other.write_text("x\ny\n")
        main([lines_file, str(other), "--seed", "9"])
        out = capsys.readouterr().out.splitlines()
        assert out == [f"{lines_file}\t3", f"{other}\t2"]

    def test_main_empty_file(self, tmp_path, capsys):
        path = tmp_path / "empty.txt"
        path.write_text("")
        main([str(path)])
        assert capsys.readouterr().out == f"{path}\t0\n"

    def test_main_missing_file(self, tmp_path, capsys):
        """Test that a missing input exits with status 2."""
        with pytest.raises(SystemExit) as exc:
            main([os.path.join(str(tmp_path), "nope.txt")])
        assert exc.value.code == 2
        assert "does not exist" in capsys.readouterr().err

    def test_main_bad_parameters(self, lines_file, capsys):
        """Test that invalid eps or delta exit with status 2."""
        with pytest.raises(SystemExit) as exc:
            main([lines_file, "--delta", "2"])
        assert exc.value.code == 2
        assert "delta" in capsys.readouterr().err

    def test_main_bad_field(self, lines_file):
        with pytest.raises(SystemExit) as exc:
            main([lines_file, "-f", "-1"])
        assert exc.value.code == 2
        with pytest.raises(SystemExit) as exc:
            main([lines_file, "-f", "4"])
        assert exc.value.code == 2

    def test_main_large_eps_warns(self, lines_file, capsys):
        """Test the accuracy warning for eps >= 1."""
        with pytest.warns(RuntimeWarning):
            main([lines_file, "--eps", "1.5", "--seed", "1"])
        capsys.readouterr()

    def test_main_verbose(self, lines_file, capsys):
        main([lines_file, "--seed", "1", "--verbose"])
        assert "Estimated 3 distinct elements" in capsys.readouterr().err
