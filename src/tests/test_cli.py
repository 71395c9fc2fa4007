import asyncio
import datetime
import json

import pytest
from tortoise import Tortoise
from typer.testing import CliRunner

from storestats.cli import main as cli_main
from storestats.cli.main import app
from storestats.features.orders.models import Order

runner = CliRunner()


@pytest.fixture
def cli_database(tmp_path, monkeypatch):
    """Points the CLI at a throwaway sqlite file holding two January orders."""
    config = {
        **cli_main.TORTOISE_ORM_CONFIG,
        "connections": {"default": f"sqlite://{tmp_path / 'cli.sqlite3'}"},
    }
    monkeypatch.setattr(cli_main, "TORTOISE_ORM_CONFIG", config)

    async def seed():
        await Tortoise.init(config=config)
        await Tortoise.generate_schemas()
        for order_id, total, day in (("C0001", 100, 1), ("C0002", 50, 2), ("C0003", 70, 5)):
            await Order.create(
                order_id=order_id, status="completed", total=total,
                billing_email="ada@example.com",
                date_created=datetime.datetime(2024, 1, day, 12, tzinfo=datetime.timezone.utc),
            )
        await Tortoise.close_connections()

    asyncio.run(seed())
    return config


def report_json(output: str):
    return json.loads(output[output.index("{"):])


def test_reports_show_rejects_unknown_report():
    result = runner.invoke(app, ["reports", "show", "profit"])
    assert result.exit_code == 1
    assert "unknown report 'profit'" in result.output


def test_reports_show_rejects_unknown_interval():
    result = runner.invoke(app, ["reports", "show", "revenue_trend", "--interval", "year"])
    assert result.exit_code == 1
    assert "unknown interval 'year'" in result.output


def test_reports_show_rejects_malformed_date():
    result = runner.invoke(app, ["reports", "show", "stats", "--from", "01/02/2024"])
    assert result.exit_code == 2


def test_reports_show_rejects_non_positive_limit():
    result = runner.invoke(app, ["reports", "show", "top_products", "--limit", "0"])
    assert result.exit_code == 2


def test_reports_show_prints_stats_for_range(cli_database):
    result = runner.invoke(app, ["reports", "show", "stats", "--from", "2024-01-01", "--to", "2024-01-02"])

    assert result.exit_code == 0, result.output
    assert report_json(result.output) == {
        "total_sales": 150.0,
        "total_orders": 2,
        "average_order_value": 75.0,
        "date_range": {"from": "2024-01-01", "to": "2024-01-02T23:59:59", "is_all_time": False},
    }


def test_reports_show_all_time(cli_database):
    result = runner.invoke(app, ["reports", "show", "stats", "--all-time"])

    assert result.exit_code == 0, result.output
    data = report_json(result.output)
    assert data["total_orders"] == 3
    assert data["date_range"]["from"] == "1970-01-01"


def test_reports_show_rejects_inverted_range(cli_database):
    result = runner.invoke(app, ["reports", "show", "stats", "--from", "2024-02-01", "--to", "2024-01-01"])

    assert result.exit_code == 1
    assert "is after end date" in result.output
