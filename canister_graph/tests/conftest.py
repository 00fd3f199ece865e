"""Shared fixtures for canister_graph tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from canister_graph.config import CanisterGraphConfig


@pytest.fixture
def config() -> CanisterGraphConfig:
    return CanisterGraphConfig()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Project tree with Motoko sources and one Rust manifest.

    frontend imports backend and an unknown canister; backend imports
    ledger; src/wallet/Cargo.toml names ledger and itself.
    """
    (tmp_path / "src" / "frontend").mkdir(parents=True)
    (tmp_path / "src" / "frontend" / "main.mo").write_text(
        'import Backend "canister:backend";\n'
        'import Ghost "canister:ghost";\n'
        'import Backend2 "canister:backend";\n'
        "actor { };\n",
        encoding="utf-8",
    )
    (tmp_path / "src" / "backend").mkdir(parents=True)
    (tmp_path / "src" / "backend" / "main.mo").write_text(
        'import Ledger "canister:ledger";\n'
        'import Debug "mo:base/Debug";\n'
        "actor { };\n",
        encoding="utf-8",
    )
    (tmp_path / "src" / "wallet").mkdir(parents=True)
    (tmp_path / "src" / "wallet" / "Cargo.toml").write_text(
        "[package]\n"
        'name = "wallet"\n'
        "\n"
        "[dependencies]\n"
        'ledger = { path = "../ledger" }\n',
        encoding="utf-8",
    )
    return tmp_path
