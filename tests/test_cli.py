"""Tests for the command-line interface."""

import pytest

from ptv import codecs
from ptv.cli import EXIT_FAILURE, EXIT_INVALID_FORMAT, EXIT_OK, build_parser, main, run


def _run(argv):
    return run(build_parser().parse_args(argv))


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["--from", "a", "--to", "b"])
        assert args.from_format == "a"
        assert args.to_format == "b"
        assert args.input == "-"
        assert args.output == "-"
        assert args.formats is False
        assert args.verbose is False


class TestRun:

    def test_formats(self, capsys):
        assert _run(["--formats"]) == EXIT_OK
        printed = capsys.readouterr().out.split()
        assert printed == codecs.list_codecs()

    def test_file_to_file(self, tmp_path):
        source = tmp_path / "in.txt"
        target = tmp_path / "out.txt"
        source.write_bytes(b"bob:pw\n")

        code = _run(["--from", "combolist_user_pass", "--to", "combolist_user_pass_url",
                     "-i", str(source), "-o", str(target)])

        assert code == EXIT_OK
        assert target.read_bytes() == b"bob:pw:\n"

    def test_unknown_format(self, tmp_path, capsys):
        source = tmp_path / "in.txt"
        source.write_bytes(b"bob:pw\n")
        assert _run(["--from", "nope", "--to", "ptv_json", "-i", str(source)]) == EXIT_INVALID_FORMAT
        assert "nope" not in capsys.readouterr().err

    def test_missing_names(self):
        assert _run([]) == EXIT_INVALID_FORMAT

    def test_parse_failure(self, tmp_path):
        source = tmp_path / "in.bin"
        source.write_bytes(b"\x00\x00")
        assert _run(["--from", "kerberos_keytab", "--to", "ptv_json", "-i", str(source)]) == EXIT_FAILURE

    def test_unreadable_input(self, tmp_path):
        missing = tmp_path / "missing.txt"
        assert _run(["--from", "hashlist_plain", "--to", "ptv_json", "-i", str(missing)]) == EXIT_FAILURE


class TestMain:

    def test_exit_code(self, tmp_path):
        source = tmp_path / "in.txt"
        source.write_bytes(b"5f4dcc3b5aa765d61d8327deb882cf99\n")
        with pytest.raises(SystemExit) as excinfo:
            main(["--from", "hashlist_plain", "--to", "jtr_pot", "-i", str(source),
                  "-o", str(tmp_path / "out.pot")])
        assert excinfo.value.code == EXIT_OK
        assert (tmp_path / "out.pot").read_bytes() == b"5f4dcc3b5aa765d61d8327deb882cf99:\n"
