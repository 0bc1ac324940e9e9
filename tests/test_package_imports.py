"""Tests that the packages import cleanly from any entry point."""

import subprocess
import sys

import pytest

import spendtrack.domain


def test_domain_exports_services():
    for name in spendtrack.domain.__all__:
        assert getattr(spendtrack.domain, name).__name__ == name


@pytest.mark.parametrize(
    "statement",
    [
        "import spendtrack.database",
        "from spendtrack.database.base import Database",
        "from spendtrack.database.factories import create_sqlite_database",
        "from spendtrack.domain.entities import Transaction",
        "from spendtrack.domain import CSVImportService",
        "from spendtrack.cli.main import cli",
    ],
)
def test_fresh_interpreter_import(statement):
    result = subprocess.run([sys.executable, "-c", statement], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
