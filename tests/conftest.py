"""Shared pytest fixtures."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from blockdraft.editor.document_model import Block, DocumentState


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep user-level overrides and log files out of the test run."""

    for name in list(os.environ):
        if name.startswith("BLOCKDRAFT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BLOCKDRAFT_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def hello_block() -> Block:
    return Block("b1", "Hello world")


@pytest.fixture
def hello_state(hello_block: Block) -> DocumentState:
    return DocumentState(blocks=(hello_block,))
