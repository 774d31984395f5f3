"""End-to-end tests for the command line, against a temporary data directory."""

import pytest
from click.testing import CliRunner

from storefront.infrastructure.cli.main import cli


@pytest.fixture
def invoke(tmp_path):
    runner = CliRunner()
    env = {"STOREFRONT_DATA_DIR": str(tmp_path), "STOREFRONT_LOG_LEVEL": "ERROR"}

    def _invoke(identity, *args):
        prefix = ["--as", identity] if identity else []
        return runner.invoke(cli, [*prefix, *args], env=env)

    return _invoke


def _stock_shelf(invoke):
    result = invoke("staff:admin", "product", "add", "--name", "Beras", "--price", "10000",
                    "--stock", "5", "--unit", "1kg")
    assert result.exit_code == 0, result.output
    result = invoke("staff:admin", "product", "add", "--name", "Gula", "--price", "5000",
                    "--stock", "2")
    assert result.exit_code == 0, result.output


class TestProductCommands:

    def test_add_and_list(self, invoke):
        _stock_shelf(invoke)
        result = invoke(None, "product", "list")
        assert result.exit_code == 0
        assert "Beras" in result.output
        assert "IDR 10,000.00" in result.output

    def test_customer_cannot_add(self, invoke):
        result = invoke("customer:alice", "product", "add", "--name", "X", "--price", "1",
                        "--stock", "1")
        assert result.exit_code == 1
        assert "not allowed" in result.output

    def test_update_needs_a_field(self, invoke):
        result = invoke("staff:admin", "product", "update", "--id", "1")
        assert result.exit_code == 2

    def test_hidden_product_not_listed(self, invoke):
        _stock_shelf(invoke)
        result = invoke("staff:admin", "product", "update", "--id", "2", "--inactive")
        assert result.exit_code == 0, result.output
        assert "Gula" not in invoke(None, "product", "list").output
        assert "Gula" in invoke(None, "product", "list", "--all").output


class TestOrderCommands:

    def test_place_order(self, invoke):
        _stock_shelf(invoke)
        result = invoke("customer:alice", "order", "place", "--items", "1:2,2:1",
                        "--address", "Jl. Merdeka 1", "--payment", "transfer")
        assert result.exit_code == 0, result.output
        assert "IDR 25,000.00" in result.output
        assert "status=pending" in result.output

        history = invoke("customer:alice", "order", "list")
        assert history.exit_code == 0
        assert "alice" in history.output

    def test_staff_list_shows_every_customer(self, invoke):
        _stock_shelf(invoke)
        invoke("customer:alice", "order", "place", "--items", "1:1", "--address", "Jl. Merdeka 1")
        invoke("customer:bob", "order", "place", "--items", "2:1", "--address", "Jl. Sudirman 2")

        result = invoke("staff:admin", "order", "list", "--all")
        assert result.exit_code == 0, result.output
        assert "alice" in result.output
        assert "bob" in result.output
        assert invoke("customer:alice", "order", "list", "--all").exit_code == 1

    def test_place_requires_login(self, invoke):
        _stock_shelf(invoke)
        result = invoke(None, "order", "place", "--items", "1:1", "--address", "Jl. Merdeka 1")
        assert result.exit_code == 1
        assert "No orders found." in invoke("staff:admin", "order", "list", "--all").output

    def test_too_many_units(self, invoke):
        _stock_shelf(invoke)
        result = invoke("customer:alice", "order", "place", "--items", "2:3",
                        "--address", "Jl. Merdeka 1")
        assert result.exit_code == 1
        assert "No orders found." in invoke("staff:admin", "order", "list", "--all").output

    def test_bad_items_format(self, invoke):
        result = invoke("customer:alice", "order", "place", "--items", "1-2",
                        "--address", "Jl. Merdeka 1")
        assert result.exit_code == 2

    def test_fulfillment_and_stats(self, invoke):
        _stock_shelf(invoke)
        invoke("customer:alice", "order", "place", "--items", "1:1", "--address", "Jl. Merdeka 1")

        skipped = invoke("staff:admin", "order", "status", "--id", "1", "--to", "shipped")
        assert skipped.exit_code == 1

        for target in ("processing", "shipped", "delivered"):
            result = invoke("staff:admin", "order", "status", "--id", "1", "--to", target)
            assert result.exit_code == 0, result.output
            assert f"is now {target}" in result.output

        stats = invoke("staff:admin", "order", "stats")
        assert stats.exit_code == 0
        assert "IDR 10,000.00" in stats.output

    def test_override_and_show(self, invoke):
        _stock_shelf(invoke)
        invoke("customer:alice", "order", "place", "--items", "1:1", "--address", "Jl. Merdeka 1")

        result = invoke("staff:admin", "order", "override", "--id", "1", "--to", "delivered", "--yes")
        assert result.exit_code == 0, result.output

        shown = invoke("customer:alice", "order", "show", "--id", "1")
        assert shown.exit_code == 0
        assert "status=delivered" in shown.output
        assert invoke("customer:bob", "order", "show", "--id", "1").exit_code == 1

    def test_unknown_identity_format(self, invoke):
        result = invoke("root", "order", "list")
        assert result.exit_code == 2
