import json

import pytest

import inventory_data
from errors import DatasetError
from schemas import Product, stock_badge


def test_bundled_datasets_load():
    inventory = inventory_data.get_inventory()
    history = inventory_data.get_sales_history()

    assert len(inventory) == 10
    assert all(isinstance(p, Product) for p in inventory)
    assert {h.product_id for h in history} == {p.product_id for p in inventory}
    assert inventory_data.get_inventory() is inventory


def test_invalid_record_raises(tmp_path):
    path = tmp_path / "inventory.json"
    path.write_text(json.dumps([{"product_id": "P1", "name": "X", "category": "C",
                                 "current_stock": -1, "price": 1.0, "monthly_sales": 1}]))
    with pytest.raises(DatasetError, match="failed validation"):
        inventory_data.load_records(path, Product)


def test_missing_and_broken_files(tmp_path):
    with pytest.raises(DatasetError, match="not found"):
        inventory_data.load_records(tmp_path / "nope.json", Product)

    broken = tmp_path / "broken.json"
    broken.write_text("[{")
    with pytest.raises(DatasetError, match="not valid JSON"):
        inventory_data.load_records(broken, Product)


def test_duplicate_product_ids_rejected(tmp_path, monkeypatch):
    record = {"product_id": "P1", "name": "X", "category": "C", "current_stock": 1, "price": 1.0, "monthly_sales": 1}
    (tmp_path / "inventory.json").write_text(json.dumps([record, record]))
    monkeypatch.setattr(inventory_data, "DATA_DIR", tmp_path)

    with pytest.raises(DatasetError, match="duplicate product_id"):
        inventory_data.get_inventory()


@pytest.mark.parametrize("stock,badge", [(0, "LOW"), (29, "LOW"), (30, "MEDIUM"), (49, "MEDIUM"), (50, "OK")])
def test_stock_badge(stock, badge):
    assert stock_badge(stock) == badge
