import json
import unittest
from datetime import datetime, timedelta, timezone

from modhub import operations
from modhub.accessor import KvAccessor
from modhub.errors import NotFoundError, StoreError, ValidationError
from modhub.kv import InMemoryKvStore
from modhub.operations import Stores
from modhub.schemas import ModPayload

NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class FailingWritesKvStore(InMemoryKvStore):
    """Accepts reads but drops writes to the listed keys."""

    def __init__(self, failing_keys):
        super().__init__()
        self.failing_keys = set(failing_keys)

    def put(self, key, value):
        if key in self.failing_keys:
            raise ConnectionError(f"cannot write {key}")
        super().put(key, value)


def _payload(**overrides):
    values = {
        "name": "Better Trees",
        "description": "Adds trees",
        "version": "1.2.0",
        "downloadUrl": "https://cdn.example/trees.zip",
    }
    values.update(overrides)
    return ModPayload(**values)


class OperationsTests(unittest.TestCase):
    def setUp(self):
        self.mods_kv = InMemoryKvStore()
        self.images_kv = InMemoryKvStore()
        self.stores = Stores(
            mods=KvAccessor(self.mods_kv), images=KvAccessor(self.images_kv)
        )

    def _stored(self, key, kv=None):
        raw = (kv or self.mods_kv).get(key)
        return json.loads(raw) if raw else None

    def test_stats_default_when_empty(self):
        stats = operations.get_stats(self.stores, now=NOW)
        self.assertEqual(
            stats, {"totalMods": 0, "totalDownloads": 0, "todayDownloads": 0}
        )
        # Nothing to roll over, so nothing is written.
        self.assertIsNone(self.mods_kv.get("stats"))

    def test_stats_roll_over(self):
        self.mods_kv.put(
            "stats",
            json.dumps(
                {"totalDownloads": 40, "todayDownloads": 7, "lastReset": "2024-04-30"}
            ),
        )
        stats = operations.get_stats(self.stores, now=NOW)
        self.assertEqual(stats["todayDownloads"], 0)
        self.assertEqual(stats["totalDownloads"], 40)
        self.assertEqual(self._stored("stats")["lastReset"], "2024-05-01")

    def test_null_counters_are_treated_as_zero(self):
        self.mods_kv.put(
            "stats",
            json.dumps(
                {"totalDownloads": None, "todayDownloads": None, "lastReset": "2024-05-01"}
            ),
        )
        self.assertEqual(operations.get_stats(self.stores, now=NOW)["totalDownloads"], 0)

        operations.record_download(self.stores, "x", now=NOW)
        stored = self._stored("stats")
        self.assertEqual(stored["totalDownloads"], 1)
        self.assertEqual(stored["todayDownloads"], 1)

    def test_get_mod(self):
        mod = operations.create_mod(self.stores, _payload(), now=NOW)
        self.assertEqual(operations.get_mod(self.stores, mod["id"]), mod)
        with self.assertRaises(NotFoundError):
            operations.get_mod(self.stores, "missing")

    def test_download_roll_over_then_count(self):
        operations.record_download(self.stores, "x", now=NOW)
        operations.record_download(self.stores, "x", now=NOW)
        next_day = NOW + timedelta(days=1)
        operations.record_download(self.stores, "x", now=next_day)

        stored = self._stored("stats")
        self.assertEqual(stored["totalDownloads"], 3)
        self.assertEqual(stored["todayDownloads"], 1)
        self.assertEqual(stored["lastReset"], "2024-05-02")

    def test_record_download_increments_by_one(self):
        mod = operations.create_mod(self.stores, _payload(), now=NOW)
        before = operations.get_stats(self.stores, now=NOW)

        result = operations.record_download(self.stores, mod["id"], now=NOW)
        self.assertEqual(result["downloadUrl"], "https://cdn.example/trees.zip")

        after = operations.get_stats(self.stores, now=NOW)
        self.assertEqual(after["totalDownloads"], before["totalDownloads"] + 1)
        self.assertEqual(after["todayDownloads"], before["todayDownloads"] + 1)
        self.assertEqual(operations.list_mods(self.stores)[0]["downloads"], 1)
        self.assertEqual(
            operations.list_activities(self.stores)[0]["details"],
            f"模组下载: {mod['id']}",
        )

    def test_create_mod_defaults(self):
        mod = operations.create_mod(self.stores, _payload(), now=NOW)
        self.assertEqual(mod["downloads"], 0)
        self.assertFalse(mod["featured"])
        self.assertEqual(mod["image"], "")
        self.assertEqual(mod["createdAt"], "2024-05-01T12:30:00.000Z")
        self.assertEqual(mod["createdAt"], mod["updatedAt"])
        self.assertEqual(self._stored("mods"), [mod])

    def test_create_mod_ids_are_unique(self):
        ids = {operations.create_mod(self.stores, _payload())["id"] for _ in range(20)}
        self.assertEqual(len(ids), 20)

    def test_create_mod_validation(self):
        with self.assertRaises(ValidationError) as ctx:
            operations.create_mod(self.stores, _payload(version="   "))
        self.assertEqual(ctx.exception.message, "模组版本不能为空")
        self.assertIsNone(self.mods_kv.get("mods"))

    def test_update_mod_preserves_identity(self):
        mod = operations.create_mod(self.stores, _payload(), now=NOW)
        operations.record_download(self.stores, mod["id"], now=NOW)
        later = NOW + timedelta(hours=1)

        updated = operations.update_mod(
            self.stores,
            mod["id"],
            _payload(name="Even Better Trees", featured=True, image="https://i/1.png"),
            now=later,
        )
        self.assertEqual(updated["id"], mod["id"])
        self.assertEqual(updated["createdAt"], mod["createdAt"])
        self.assertEqual(updated["downloads"], 1)
        self.assertEqual(updated["name"], "Even Better Trees")
        self.assertTrue(updated["featured"])
        self.assertEqual(updated["image"], "https://i/1.png")
        self.assertEqual(updated["updatedAt"], "2024-05-01T13:30:00.000Z")

    def test_update_mod_keeps_unknown_fields(self):
        self.mods_kv.put(
            "mods",
            json.dumps(
                [
                    {
                        "id": "legacy",
                        "name": "Old",
                        "description": "d",
                        "version": "0.1",
                        "downloadUrl": "u",
                        "downloads": 3,
                        "createdAt": "c",
                        "updatedAt": "c",
                        "tags": ["x"],
                    }
                ]
            ),
        )
        updated = operations.update_mod(self.stores, "legacy", _payload(), now=NOW)
        self.assertEqual(updated["tags"], ["x"])
        self.assertEqual(updated["downloads"], 3)

    def test_update_unknown_mod(self):
        with self.assertRaises(NotFoundError):
            operations.update_mod(self.stores, "missing", _payload())

    def test_delete_mod(self):
        keep = operations.create_mod(self.stores, _payload(name="keep"))
        drop = operations.create_mod(self.stores, _payload(name="drop"))
        operations.delete_mod(self.stores, drop["id"])

        self.assertEqual(
            [m["id"] for m in operations.list_mods(self.stores)], [keep["id"]]
        )
        self.assertEqual(
            operations.list_activities(self.stores)[0]["details"], "删除模组: drop"
        )
        with self.assertRaises(NotFoundError):
            operations.delete_mod(self.stores, drop["id"])

    def test_list_mods_featured(self):
        operations.create_mod(self.stores, _payload(name="a"))
        star = operations.create_mod(self.stores, _payload(name="b", featured=True))
        featured = operations.list_mods(self.stores, featured=True)
        self.assertEqual([m["id"] for m in featured], [star["id"]])

    def test_upload_image_stub(self):
        image = operations.upload_image(self.stores, None, now=NOW)
        self.assertEqual(image["name"], f"image-{image['id']}")
        self.assertEqual(image["size"], 0)
        self.assertTrue(image["url"].endswith(image["id"]))
        self.assertEqual(self._stored("images", self.images_kv), [image])
        self.assertEqual(operations.list_images(self.stores), [image])

    def test_delete_image(self):
        image = operations.upload_image(self.stores, "banner.jpg")
        operations.delete_image(self.stores, image["id"])
        self.assertEqual(operations.list_images(self.stores), [])
        self.assertEqual(
            operations.list_activities(self.stores)[0]["details"],
            "删除图片: banner.jpg",
        )
        with self.assertRaises(NotFoundError):
            operations.delete_image(self.stores, image["id"])

    def test_activity_log_is_capped(self):
        for i in range(operations.ACTIVITY_LOG_LIMIT + 5):
            operations.record_activity(self.stores, "download", f"event {i}")

        stored = self._stored("activities")
        self.assertEqual(len(stored), operations.ACTIVITY_LOG_LIMIT)
        self.assertEqual(stored[0]["details"], "event 104")
        self.assertEqual(len(operations.list_activities(self.stores)), 10)

    def test_activity_failure_does_not_fail_operation(self):
        self.stores.mods = KvAccessor(FailingWritesKvStore({"activities"}))
        mod = operations.create_mod(self.stores, _payload())
        self.assertEqual(operations.list_mods(self.stores), [mod])
        self.assertEqual(operations.list_activities(self.stores), [])

    def test_dropped_write_raises(self):
        self.stores.mods = KvAccessor(FailingWritesKvStore({"mods"}))
        with self.assertRaises(StoreError):
            operations.create_mod(self.stores, _payload())

    def test_corrupt_document_raises(self):
        self.mods_kv.put("mods", "{not json")
        with self.assertRaises(StoreError):
            operations.list_mods(self.stores)


if __name__ == "__main__":
    unittest.main()
