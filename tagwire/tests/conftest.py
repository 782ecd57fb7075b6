"""Unit tests configuration file."""

import sys
import types

import pytest

from tagwire.generator import parse
from tagwire.generator.python import render


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def gen_code():
    """Generate Python code for schema text and exec it, returning its globals.

    The code runs inside a module registered in sys.modules, as dataclasses
    resolves string annotations through the defining module.
    """
    names = []

    def _gen_code(text, stem="test"):
        name = f"tagwire_generated_{stem}"
        module = types.ModuleType(name)
        sys.modules[name] = module
        names.append(name)

        generated_code = render(parse(text), stem, runtime_import="tagwire.proto")
        exec(generated_code, module.__dict__)
        return module.__dict__

    yield _gen_code

    for name in names:
        sys.modules.pop(name, None)
