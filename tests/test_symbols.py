"""Tests for federation/symbols.py - ephemeral symbol lifecycle."""

from __future__ import annotations

import pandas as pd
import pytest

from omophelper.federation.memory import InMemoryFederation
from omophelper.federation.symbols import SymbolManager


@pytest.fixture
def gateway() -> InMemoryFederation:
    gateway = InMemoryFederation.from_tables({
        "server_a": {"person": pd.DataFrame({"person_id": [1, 2]})},
        "server_b": {"person": pd.DataFrame({"person_id": [3]})},
    })
    gateway.open({"server_a": "omop", "server_b": "omop"})
    return gateway


class TestIssue:
    """Symbol generation."""

    def test_symbols_are_unique(self, gateway: InMemoryFederation) -> None:
        manager = SymbolManager(gateway)
        issued = [manager.issue() for _ in range(500)]
        assert len(set(issued)) == 500

    def test_symbol_format(self, gateway: InMemoryFederation) -> None:
        manager = SymbolManager(gateway, prefix="tmp", token="abc")
        assert manager.issue() == "tmp.abc.1"
        assert manager.issue() == "tmp.abc.2"

    def test_managers_do_not_collide(self, gateway: InMemoryFederation) -> None:
        first = SymbolManager(gateway)
        second = SymbolManager(gateway)
        assert first.issue() != second.issue()

    def test_skips_symbols_bound_remotely(self, gateway: InMemoryFederation) -> None:
        """A symbol already bound on any server is never handed out."""
        gateway.workspace("server_b")["tmp.abc.1"] = pd.DataFrame({"x": [1]})
        manager = SymbolManager(gateway, prefix="tmp", token="abc")
        assert manager.issue() == "tmp.abc.2"


class TestEphemeral:
    """Scoped symbols are removed on every exit path."""

    def test_removed_after_block(self, gateway: InMemoryFederation) -> None:
        manager = SymbolManager(gateway)
        with manager.ephemeral() as symbol:
            gateway.get("person", symbol)
            assert gateway.exists(symbol)
        assert not gateway.exists(symbol)

    def test_removed_after_error(self, gateway: InMemoryFederation) -> None:
        manager = SymbolManager(gateway)
        with pytest.raises(RuntimeError, match="boom"):
            with manager.ephemeral() as symbol:
                gateway.get("person", symbol)
                raise RuntimeError("boom")
        assert not gateway.exists(symbol)

    def test_release_failure_keeps_original_error(self, gateway: InMemoryFederation, monkeypatch) -> None:
        """A failing removal does not mask the error that triggered it."""
        manager = SymbolManager(gateway)

        def broken_remove(symbol: str) -> None:
            raise ConnectionError("server unreachable")

        monkeypatch.setattr(gateway, "remove", broken_remove)

        with pytest.raises(RuntimeError, match="boom"):
            with manager.ephemeral():
                raise RuntimeError("boom")

    def test_release_failure_after_success_propagates(self, gateway: InMemoryFederation, monkeypatch) -> None:
        manager = SymbolManager(gateway)

        def broken_remove(symbol: str) -> None:
            raise ConnectionError("server unreachable")

        monkeypatch.setattr(gateway, "remove", broken_remove)

        with pytest.raises(ConnectionError):
            with manager.ephemeral():
                pass
