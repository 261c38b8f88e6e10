"""Stock ledger: conditional reserve, release, unlimited stock."""
import pytest

from qrmenu.core.errors import InsufficientStock, ProductNotFound, ProductUnavailable
from qrmenu.db import stock_ledger
from qrmenu.db.database import unit_of_work

from factories import make_product, stock_of


@pytest.mark.asyncio
async def test_reserve_decrements(db, restaurant):
    product = await make_product(db, restaurant, "Latte", stock=10)
    async with unit_of_work(db):
        await stock_ledger.try_reserve(db, product.id, 4)
    assert await stock_of(db, product.id) == 6


@pytest.mark.asyncio
async def test_reserve_exact_remaining_stock(db, restaurant):
    product = await make_product(db, restaurant, "Mocha", stock=3)
    async with unit_of_work(db):
        await stock_ledger.try_reserve(db, product.id, 3)
    assert await stock_of(db, product.id) == 0


@pytest.mark.asyncio
async def test_insufficient_stock_reports_name_and_remaining(db, restaurant):
    product = await make_product(db, restaurant, "Cheesecake", stock=1)
    product_id = product.id
    with pytest.raises(InsufficientStock) as exc:
        async with unit_of_work(db):
            await stock_ledger.try_reserve(db, product_id, 2)
    assert exc.value.product_name == "Cheesecake"
    assert exc.value.available == 1
    assert "Cheesecake" in str(exc.value)
    assert await stock_of(db, product_id) == 1


@pytest.mark.asyncio
async def test_unavailable_product_is_refused_even_with_stock(db, restaurant):
    product = await make_product(db, restaurant, "Seasonal Tea", stock=50, is_available=False)
    product_id = product.id
    with pytest.raises(ProductUnavailable):
        async with unit_of_work(db):
            await stock_ledger.try_reserve(db, product_id, 1)
    assert await stock_of(db, product_id) == 50


@pytest.mark.asyncio
async def test_missing_product(db, restaurant):
    with pytest.raises(ProductNotFound):
        async with unit_of_work(db):
            await stock_ledger.try_reserve(db, "no-such-product", 1)


@pytest.mark.asyncio
async def test_quantity_must_be_positive(db, restaurant):
    product = await make_product(db, restaurant, "Water", stock=5)
    with pytest.raises(ValueError):
        await stock_ledger.try_reserve(db, product.id, 0)


@pytest.mark.asyncio
async def test_unlimited_stock_is_never_written(db, restaurant):
    product = await make_product(db, restaurant, "Filter Coffee", stock=None)
    for _ in range(3):
        async with unit_of_work(db):
            await stock_ledger.try_reserve(db, product.id, 1000)
        async with unit_of_work(db):
            await stock_ledger.release(db, product.id, 7)
    assert await stock_of(db, product.id) is None


@pytest.mark.asyncio
async def test_reserve_then_release_restores_stock(db, restaurant):
    product = await make_product(db, restaurant, "Croissant", stock=12)
    async with unit_of_work(db):
        await stock_ledger.try_reserve(db, product.id, 5)
        await stock_ledger.try_reserve(db, product.id, 2)
    async with unit_of_work(db):
        await stock_ledger.release(db, product.id, 2)
        await stock_ledger.release(db, product.id, 5)
    assert await stock_of(db, product.id) == 12


@pytest.mark.asyncio
async def test_release_ignores_availability(db, restaurant):
    product = await make_product(db, restaurant, "Bagel", stock=0, is_available=False)
    async with unit_of_work(db):
        await stock_ledger.release(db, product.id, 3)
    assert await stock_of(db, product.id) == 3
