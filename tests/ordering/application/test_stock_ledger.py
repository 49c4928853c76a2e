"""Application tests for guarded stock movements."""

from unittest.mock import patch

import pytest
from ordering.catalog.repository import ProductRepository
from ordering.errors import ConcurrencyConflict, InsufficientStockError, NotFoundError
from ordering.stock.ledger import StockLedger


class TestWithdraw:
    def test_withdraw_decrements_stock(self, register_product, stock_of):
        product_id = register_product(stock=10)
        levels = StockLedger().withdraw({product_id: 4})
        assert levels == {product_id: 6}
        assert stock_of(product_id) == 6

    def test_withdraw_down_to_zero(self, register_product, stock_of):
        product_id = register_product(stock=3)
        StockLedger().withdraw({product_id: 3})
        assert stock_of(product_id) == 0

    def test_withdraw_more_than_available(self, register_product, stock_of):
        product_id = register_product(name="Lamp", stock=2)
        with pytest.raises(InsufficientStockError) as exc:
            StockLedger().withdraw({product_id: 3})
        assert exc.value.available == 2
        assert stock_of(product_id) == 2

    def test_withdraw_unknown_product(self):
        with pytest.raises(NotFoundError):
            StockLedger().withdraw({"missing-product": 1})

    def test_products_are_visited_in_ascending_id_order(self, register_product):
        ids = [register_product(stock=5) for _ in range(3)]
        visited = []
        original = ProductRepository.compare_and_set_stock

        def _spy(self, product_id, expected, new):
            visited.append(str(product_id))
            return original(self, product_id, expected, new)

        with patch.object(ProductRepository, "compare_and_set_stock", _spy):
            StockLedger().withdraw({ids[2]: 1, ids[0]: 1, ids[1]: 1})

        assert visited == sorted(ids)


class TestCompareAndSet:
    def test_stale_expected_value_matches_no_row(self, register_product, stock_of):
        from protean import current_domain

        from ordering.catalog.product import Product

        product_id = register_product(stock=5)
        repo = current_domain.repository_for(Product)

        assert repo.compare_and_set_stock(product_id, 4, 1) is False
        assert stock_of(product_id) == 5
        assert repo.compare_and_set_stock(product_id, 5, 1) is True
        assert stock_of(product_id) == 1

    def test_lost_race_is_retried_against_fresh_value(self, register_product, stock_of):
        product_id = register_product(stock=5)
        original = ProductRepository.compare_and_set_stock
        calls = {"n": 0}

        def _interfere_once(self, pid, expected, new):
            calls["n"] += 1
            if calls["n"] == 1:
                # A concurrent order takes two units between the read and the write
                original(self, pid, expected, expected - 2)
            return original(self, pid, expected, new)

        with patch.object(ProductRepository, "compare_and_set_stock", _interfere_once):
            StockLedger().withdraw({product_id: 1})

        assert calls["n"] == 2
        assert stock_of(product_id) == 2

    def test_lost_race_can_turn_into_insufficient_stock(self, register_product, stock_of):
        product_id = register_product(stock=3)
        original = ProductRepository.compare_and_set_stock
        calls = {"n": 0}

        def _interfere_once(self, pid, expected, new):
            calls["n"] += 1
            if calls["n"] == 1:
                original(self, pid, expected, 0)
            return original(self, pid, expected, new)

        with patch.object(ProductRepository, "compare_and_set_stock", _interfere_once):
            with pytest.raises(InsufficientStockError):
                StockLedger().withdraw({product_id: 2})

        assert stock_of(product_id) == 0

    def test_conflict_after_bounded_attempts(self, register_product, stock_of):
        product_id = register_product(stock=5)

        with patch.object(ProductRepository, "compare_and_set_stock", return_value=False):
            with pytest.raises(ConcurrencyConflict):
                StockLedger(max_attempts=3).withdraw({product_id: 1})

        assert stock_of(product_id) == 5

    def test_attempts_default_from_environment(self, monkeypatch):
        monkeypatch.setenv("STOCK_CAS_MAX_ATTEMPTS", "7")
        assert StockLedger().max_attempts == 7


class TestRestore:
    def test_restore_increments_stock(self, register_product, stock_of):
        product_id = register_product(stock=1)
        assert StockLedger().restore({product_id: 4}) == []
        assert stock_of(product_id) == 5

    def test_missing_products_are_skipped(self, register_product, stock_of):
        product_id = register_product(stock=1)
        skipped = StockLedger().restore({product_id: 2, "gone-product": 3})
        assert skipped == ["gone-product"]
        assert stock_of(product_id) == 3

    def test_missing_product_raises_when_not_allowed(self):
        with pytest.raises(NotFoundError):
            StockLedger().restore({"gone-product": 3}, missing_ok=False)

    def test_deposit_returns_new_level(self, register_product):
        product_id = register_product(stock=2)
        assert StockLedger().deposit(product_id, 8) == 10
