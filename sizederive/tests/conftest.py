"""Unit tests configuration file."""

import pytest

from sizederive.generator import TypeDeclaration, parse


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def parse_one():
    """Parse text holding exactly one declaration."""

    def _parse_one(text: str) -> TypeDeclaration:
        decls = parse(text)
        assert len(decls) == 1
        return decls[0]

    return _parse_one
