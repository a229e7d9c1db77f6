"""FinMan admin CLI: seed demo data and inspect the configured storage.

Usage:
    finman-admin seed                # Test user, default categories, sample transactions
    finman-admin seed --count 50
    finman-admin reset-db            # Drop everything, recreate test and admin users
    finman-admin check-db            # Ping storage and list collections
"""

import asyncio
import concurrent.futures
import random
import sys
from collections.abc import Coroutine
from datetime import timedelta
from typing import Any, TypeVar

import click

from finman.config import Config
from finman.core.core import Core
from finman.core.modules.transaction.models import PaymentMethod, TransactionType
from finman.core.modules.user.models import User
from finman.core.storage import create_store
from finman.errors import NotFoundError
from finman.logging import setup_logging
from finman.utils import now

TEST_USER_NAME = "Test User"
TEST_USER_EMAIL = "test@example.com"
TEST_USER_PASSWORD = "password123"

T = TypeVar("T")

SAMPLE_DESCRIPTIONS = {
    TransactionType.INCOME: ["Monthly salary", "Freelance project", "Dividend payout", "Gift from family"],
    TransactionType.EXPENSE: ["Weekly groceries", "Electricity bill", "Bus pass", "Dinner out", "Cinema tickets"],
}


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when an event loop is already running (e.g. under tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


async def _ensure_test_user(core: Core) -> User:
    users = core.services.user
    try:
        return users.get_user_by_email(TEST_USER_EMAIL)
    except NotFoundError:
        user = await users.create_user(TEST_USER_NAME, TEST_USER_EMAIL, TEST_USER_PASSWORD)
        await core.services.category.create_default_categories(user.id)
        click.echo(f"Created test user {TEST_USER_EMAIL} / {TEST_USER_PASSWORD}")
        return user


async def _seed(config: Config, count: int, seed: int) -> int:
    core = Core(config)
    async with core.lifespan():
        user = await _ensure_test_user(core)
        categories = await core.services.category.list_categories(user.id)
        if not categories:
            categories = await core.services.category.create_default_categories(user.id)

        rng = random.Random(seed)
        start = now()
        for _ in range(count):
            category = rng.choice(categories)
            amount = rng.uniform(500, 3000) if category.type == TransactionType.INCOME else rng.uniform(5, 250)
            await core.services.transaction.create_transaction(
                user.id,
                category,
                category.type,
                round(amount, 2),
                rng.choice(SAMPLE_DESCRIPTIONS[category.type]),
                start - timedelta(days=rng.randint(0, 90)),
                rng.choice(list(PaymentMethod)),
            )
    return count


async def _reset(config: Config) -> None:
    core = Core(config)
    await core.store.open()
    try:
        await core.store.drop_all()
        # Starting services recreates indexes and the admin user
        await core.services.start_all()
        await _ensure_test_user(core)
        await core.services.stop_all()
    finally:
        await core.store.close()


async def _check(config: Config) -> tuple[dict[str, Any], list[str]]:
    store = create_store(config)
    await store.open()
    try:
        await store.ping()
        return await store.describe(), await store.collection_names()
    finally:
        await store.close()


@click.group()
@click.option("--debug", is_flag=True, help="Verbose logging.")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """FinMan administration commands."""
    ctx.obj = Config(debug=debug) if debug else Config()
    setup_logging(ctx.obj.debug)


@cli.command()
@click.option("--count", default=10, show_default=True, help="Number of sample transactions.")
@click.option("--seed", "seed_value", default=42, show_default=True, help="Random seed for sample data.")
@click.pass_obj
def seed(config: Config, count: int, seed_value: int) -> None:
    """Create the test user, its default categories and sample transactions."""
    created = _run(_seed(config, count, seed_value))
    click.secho(f"Added {created} sample transactions for {TEST_USER_EMAIL}", fg="green")


@cli.command("reset-db")
@click.confirmation_option(prompt="This deletes ALL data. Continue?")
@click.pass_obj
def reset_db(config: Config) -> None:
    """Drop all data and recreate the admin and test users."""
    _run(_reset(config))
    click.secho("Database reset", fg="green")


@cli.command("check-db")
@click.pass_obj
def check_db(config: Config) -> None:
    """Verify that the configured storage is reachable."""
    try:
        description, collections = _run(_check(config))
    except Exception as e:  # noqa: BLE001
        click.secho(f"Storage unreachable ({config.storage}): {e}", fg="red", err=True)
        sys.exit(1)

    click.secho("Connected", fg="green")
    for key, value in description.items():
        click.echo(f"{key}: {value}")
    click.echo("collections:")
    for name in collections:
        click.echo(f"  - {name}")
