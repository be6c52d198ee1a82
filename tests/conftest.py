from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings

from fencecheck.core.context import RunContext
from helpers import write_fake_compiler

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("fencecheck", deadline=None, max_examples=100)
settings.load_profile("fencecheck")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture
def run_ctx(tmp_path: Path) -> RunContext:
    return RunContext.from_args("pytest-run", quiet=True, cwd=tmp_path)


@pytest.fixture
def fake_compiler(tmp_path: Path) -> Path:
    tools = tmp_path / "tools"
    tools.mkdir()
    return write_fake_compiler(tools)


@pytest.fixture
def docs_project(tmp_path: Path) -> Path:
    """Project skeleton with a 5-line boilerplate and an empty content root."""
    project = tmp_path / "project"
    (project / "docs").mkdir(parents=True)
    (project / "prelude.fe").write_text(
        "// shared prelude\nstruct Ctx {}\nfn stub() {}\nconst ONE: u256 = 1\n// end prelude\n",
        encoding="utf-8",
    )
    return project
