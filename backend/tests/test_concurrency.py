# Overview: Pytest coverage for concurrent stock mutations against a shared file database.

"""
Concurrency Tests

Two workers sell from the same product at the same moment. The in-memory
test database shares one connection, so these tests run against a
temporary SQLite file where each thread gets its own connection and the
write lock is real.
"""

import threading

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Product, SaleRecord
from stockroom.services import category_service, stock_service
from stockroom.services.auth_service import create_user
from stockroom.services.stock_service import InsufficientStockError

from conftest import TEST_CONFIG


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        **TEST_CONFIG,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'stock.sqlite3'}",
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def seeded(file_app):
    with file_app.app_context():
        owner = create_user(
            full_name="Race Owner",
            email="race@example.com",
            username="race",
            password="Password123!",
        )
        category = category_service.create_category(user_id=owner.id, name="Racing")
        product = stock_service.create_product(
            user_id=owner.id,
            name="Limited Jacket",
            category_id=category["id"],
            current_stock=10,
            price_cents=5000,
            minimum_stock=2,
        )
        return owner.id, product["id"]


def _run_concurrently(app, fn, workers: int):
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                result = fn()
                outcome = ("ok", result)
            except InsufficientStockError as e:
                outcome = ("insufficient", e)
            except Exception as e:
                outcome = ("error", e)
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


class TestConcurrentSell:
    def test_two_sells_of_six_from_ten(self, file_app, seeded):
        user_id, product_id = seeded

        outcomes = _run_concurrently(
            file_app,
            lambda: stock_service.sell_product(user_id=user_id, product_id=product_id, quantity=6),
            workers=2,
        )

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ["insufficient", "ok"]

        with file_app.app_context():
            product = db.session.get(Product, product_id)
            assert product.current_stock == 4
            assert product.status == "available"
            assert db.session.query(SaleRecord).filter_by(product_id=product_id).count() == 1

    def test_concurrent_replenish_and_sell_lose_no_update(self, file_app, seeded):
        user_id, product_id = seeded
        calls = iter([
            lambda: stock_service.replenish(user_id=user_id, product_id=product_id, quantity_delta=5),
            lambda: stock_service.sell_product(user_id=user_id, product_id=product_id, quantity=3),
        ])
        calls_lock = threading.Lock()

        def next_call():
            with calls_lock:
                call = next(calls)
            return call()

        outcomes = _run_concurrently(file_app, next_call, workers=2)

        assert [kind for kind, _ in outcomes] == ["ok", "ok"]
        with file_app.app_context():
            product = db.session.get(Product, product_id)
            assert product.current_stock == 12
