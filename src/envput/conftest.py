import os

import pytest


@pytest.fixture(autouse=True)
def ensure_workingdir():
    working_dir = os.getcwd()
    yield
    os.chdir(working_dir)


@pytest.fixture(autouse=True)
def output(monkeypatch):
    from envput._output import TestBackend, output

    backend = TestBackend()
    monkeypatch.setattr(output, "backend", backend)
    monkeypatch.setattr(output, "enable_debug", False)
    return output
