"""Shared test fixtures and utilities."""

import logging
from pathlib import Path
import pytest


@pytest.fixture(autouse=True)
def reset_scopegrep_logger():
    """Undo CLI logging setup so caplog sees records in every test."""
    yield
    logger = logging.getLogger("scopegrep")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture to write files relative to tmp_path."""
    def _write(path: str, content="test content"):
        file_path = tmp_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            file_path.write_bytes(content)
        else:
            file_path.write_text(content)
        return file_path
    return _write


@pytest.fixture
def sample_tree(tmp_path, write_file):
    """Small tree with one nested ignored file.

        root/
            a.txt
            .gitignore      -> "b.txt"
            sub/
                b.txt
                c.txt
    """
    root = tmp_path / "root"
    write_file("root/a.txt", "x marks the spot\nnothing here\n")
    write_file("root/.gitignore", "b.txt\n")
    write_file("root/sub/b.txt", "x in an ignored file\n")
    write_file("root/sub/c.txt", "no match\nanother x\n")
    return root
