from datetime import timedelta

from sqlalchemy import update

from billing.cache import ITEMS_ACTIVE_KEY
from billing.services.items import create_item, purge_expired_items, soft_delete_item
from billing.tasks.cleanup import CleanupSweeper, purge_expired_items_task
from billing.utils import db_now
from models import db
from models.item import Item


def _item(name):
    return create_item({"name": name, "arabic_name": "x", "buying_price": "1", "selling_price": "2"})


def _expire(item_id):
    soft_delete_item(item_id)
    db.session.execute(
        update(Item).where(Item.item_id == item_id).values(deleted_at=db_now() - timedelta(hours=48))
    )
    db.session.commit()


def test_purge_expired_items_is_idempotent(app):
    _item("A")
    _item("B")
    _expire("ITEM001")
    soft_delete_item("ITEM002")
    assert purge_expired_items() == 1
    assert purge_expired_items() == 0
    assert Item.query.count() == 1


def test_sweeper_run_once_invalidates_cache(app):
    _item("A")
    _expire("ITEM001")
    cache = app.extensions["item_cache"]
    cache.set(ITEMS_ACTIVE_KEY, ["stale"])

    sweeper = CleanupSweeper(app, interval=60)
    assert sweeper.run_once() == 1
    assert cache.get(ITEMS_ACTIVE_KEY) is None


def test_sweeper_run_once_keeps_cache_when_nothing_purged(app):
    cache = app.extensions["item_cache"]
    cache.set(ITEMS_ACTIVE_KEY, ["fresh"])
    assert CleanupSweeper(app, interval=60).run_once() == 0
    assert cache.get(ITEMS_ACTIVE_KEY) == ["fresh"]


def test_sweeper_start_and_stop(app):
    sweeper = CleanupSweeper(app, interval=3600)
    assert sweeper.start() is sweeper
    assert sweeper.running
    sweeper.stop(timeout=2)
    assert not sweeper.running


def test_sweeper_default_interval_from_config(app):
    assert CleanupSweeper(app).interval == app.config["ITEM_CLEANUP_INTERVAL_SEC"]


def test_celery_task_purges(app):
    _item("A")
    _expire("ITEM001")
    result = purge_expired_items_task.apply()
    assert result.get() == 1


def test_cli_items_cleanup(app):
    _item("A")
    _expire("ITEM001")
    runner = app.test_cli_runner()
    result = runner.invoke(args=["items-cleanup"])
    assert result.exit_code == 0
    assert "Purged 1 expired items." in result.output
