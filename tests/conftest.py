import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

import toyc


@pytest.fixture
def run_toyc(tmp_path, capsys):
    """Return a helper that writes source to a file and runs the toyc CLI on it."""

    def _run(src: str, *flags: str):
        src_file = tmp_path / "input"
        src_file.write_text(src, encoding="utf-8")

        rc = toyc.main(["toyc.py", *flags, str(src_file)])
        captured = capsys.readouterr()
        return rc, captured.out, captured.err

    return _run
