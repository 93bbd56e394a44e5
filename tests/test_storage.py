import json
from datetime import datetime, timedelta
from urllib.parse import quote

from centerledger.models import AttendanceRecord
from centerledger.storage import (
    CHANGE_EVENT,
    COOKIE_SAFE_CHARS,
    DATA_COOKIE,
    STATS_COOKIE,
    STORAGE_KEY,
    AttendanceCache,
    ChangeNotifier,
    CookieJar,
    KeyValueStore,
)


def _records(count):
    return [
        AttendanceRecord(
            id=f"r{index}",
            employee_name=f"E{index}",
            date="2024-05-10",
            check_in_time="09:00",
            check_out_time="17:00",
            working_hours=8,
            created_at="2024-05-10T09:00:00",
        )
        for index in range(count)
    ]


def test_save_then_load_round_trips(fixed_clock, cookie_jar) -> None:
    cache = AttendanceCache(cookies=cookie_jar, clock=fixed_clock)
    records = _records(3)

    cache.save(records)

    assert cache.load() == records
    stored = json.loads(cache.storage.get_item(STORAGE_KEY))
    assert stored["lastUpdated"] == "2024-05-10T12:00:00"
    assert stored["data"][0]["employeeName"] == "E0"


def test_mirror_keeps_the_last_twenty_records(fixed_clock, cookie_jar) -> None:
    cache = AttendanceCache(cookies=cookie_jar, clock=fixed_clock)

    cache.save(_records(25))

    mirror = json.loads(cookie_jar.get(DATA_COOKIE))
    assert [item["id"] for item in mirror] == [f"r{index}" for index in range(5, 25)]


def test_load_falls_back_to_cookie_mirror(fixed_clock, cookie_jar) -> None:
    AttendanceCache(cookies=cookie_jar, clock=fixed_clock).save(_records(2))
    fresh = AttendanceCache(KeyValueStore(), cookie_jar, clock=fixed_clock)

    restored = fresh.load()

    assert [record.id for record in restored] == ["r0", "r1"]
    assert restored[0].created_at is None


def test_mirror_entries_without_id_get_cookie_ids(fixed_clock, cookie_jar) -> None:
    cookie_jar.set(DATA_COOKIE, json.dumps([{"n": "Ali", "dt": "2024-05-10", "ci": "09:00", "s": "late"}]), 365)

    restored = AttendanceCache(cookies=cookie_jar, clock=fixed_clock).load()

    assert restored[0].id.startswith("cookie_1715")
    assert restored[0].employee_name == "Ali"


def test_oversized_mirror_drops_oldest_entries(fixed_clock, logger) -> None:
    cookies = CookieJar(clock=fixed_clock, max_bytes=600, logger=logger)
    cache = AttendanceCache(cookies=cookies, clock=fixed_clock, logger=logger)

    cache.save(_records(10))

    value = cookies.get(DATA_COOKIE)
    mirror = json.loads(value)
    assert 0 < len(mirror) < 10
    assert mirror[-1]["id"] == "r9"
    assert len(f"{DATA_COOKIE}={quote(value, safe=COOKIE_SAFE_CHARS)}".encode("utf-8")) <= 600
    assert logger.events("cookie_rejected")
    assert cache.load() == _records(10)


def test_stats_cookie_is_written(fixed_clock, cookie_jar) -> None:
    AttendanceCache(cookies=cookie_jar, clock=fixed_clock).save(_records(2))

    stats = json.loads(cookie_jar.get(STATS_COOKIE))

    assert stats["totalEmployees"] == 2
    assert stats["presentToday"] == 2
    assert stats["averageWorkingHours"] == 8.0


def test_cookies_expire(fixed_clock, cookie_jar) -> None:
    cookie_jar.set(STATS_COOKIE, "{}", 7)
    cookie_jar.set("session", "abc")

    assert cookie_jar.get(STATS_COOKIE, at=fixed_clock() + timedelta(days=6)) == "{}"
    assert cookie_jar.get(STATS_COOKIE, at=fixed_clock() + timedelta(days=8)) is None
    assert cookie_jar.get("session", at=datetime(2100, 1, 1)) == "abc"
    cookie_jar.remove("session")
    assert cookie_jar.names() == (STATS_COOKIE,)


def test_file_backed_stores_survive_reopening(tmp_path, fixed_clock) -> None:
    storage = KeyValueStore(tmp_path / "local.json")
    cookies = CookieJar(tmp_path / "cookies.json", clock=fixed_clock)
    AttendanceCache(storage, cookies, clock=fixed_clock).save(_records(1))

    reopened = AttendanceCache(
        KeyValueStore(tmp_path / "local.json"),
        CookieJar(tmp_path / "cookies.json", clock=fixed_clock),
        clock=fixed_clock,
    )

    assert reopened.load() == _records(1)
    assert reopened.cookies.get(DATA_COOKIE) is not None


class _BrokenStorage(KeyValueStore):
    def set_item(self, key, value):
        raise OSError("quota exceeded")


def test_save_failure_is_logged_not_raised(fixed_clock, logger) -> None:
    notifier = ChangeNotifier()
    seen = []
    notifier.register(CHANGE_EVENT, seen.append)
    cache = AttendanceCache(_BrokenStorage(), notifier=notifier, logger=logger, clock=fixed_clock)

    cache.save(_records(1))

    assert logger.events("attendance_save_failed")[0]["error"] == "quota exceeded"
    assert seen == []


def test_corrupt_storage_loads_as_empty(fixed_clock, logger) -> None:
    storage = KeyValueStore()
    storage.set_item(STORAGE_KEY, "{not json")

    assert AttendanceCache(storage, logger=logger, clock=fixed_clock).load() == []
    assert logger.events("attendance_load_failed")


def test_change_notifier_dispatch_and_unregister() -> None:
    notifier = ChangeNotifier()
    seen = []
    notifier.register(CHANGE_EVENT, seen.append)

    notifier.dispatch(CHANGE_EVENT, {"data": [1]})
    notifier.unregister(CHANGE_EVENT, seen.append)
    notifier.unregister(CHANGE_EVENT, seen.append)
    notifier.dispatch(CHANGE_EVENT, {"data": [2]})

    assert seen == [{"data": [1]}]


def test_corrupt_backing_files_start_empty(tmp_path, fixed_clock, logger) -> None:
    local = tmp_path / "local.json"
    jar = tmp_path / "cookies.json"
    local.write_text("{not json", encoding="utf-8")
    jar.write_text("[1, 2", encoding="utf-8")

    cache = AttendanceCache(
        KeyValueStore(local, logger=logger),
        CookieJar(jar, clock=fixed_clock, logger=logger),
        clock=fixed_clock,
        logger=logger,
    )

    assert cache.load() == []
    assert logger.events("local_storage_unreadable")[0]["path"] == str(local)
    assert logger.events("cookie_jar_unreadable")[0]["path"] == str(jar)

    cache.save(_records(1))

    assert KeyValueStore(local).get_item(STORAGE_KEY) is not None
