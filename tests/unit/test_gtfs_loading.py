from __future__ import annotations

import io
import logging
import zipfile
from datetime import date
from pathlib import Path

import httpx
import pytest

from src.adapters.persistence.http_gtfs_repository import HttpGtfsRepository
from src.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from src.domain.algorithms.service_calendar import resolve_active_trips
from src.domain.exceptions import ScheduleUnavailable
from src.domain.models import ExceptionType

TABLES = {
    "stops.txt": (
        "stop_id,stop_name,stop_lat,stop_lon\n"
        "MAD,Madrid Puerta de Atocha,40.4065,-3.6895\n"
        "GUA,Guadalajara-Yebes,40.5700,-3.1000\n"
        "BAD,Broken,not-a-number,0\n"
    ),
    "routes.txt": (
        "route_id,route_short_name,route_long_name,route_type,route_color\n"
        "AVE1,AVE,Madrid - Barcelona,2,6E2585\n"
    ),
    "trips.txt": (
        "route_id,service_id,trip_id,trip_headsign,trip_short_name\n"
        "AVE1,WK,T1,Barcelona-Sants,03063\n"
        "AVE1,HOL,T2,Barcelona-Sants,\n"
    ),
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
        "T1,08:25:00,08:25:00,GUA,2\n"
        "T1,08:00:00,08:00:00,MAD,1\n"
        "T2,10:00:00,10:00:00,MAD,1\n"
        "T2,10:25:00,10:25:00,GUA,2\n"
        "GHOST,10:00:00,10:00:00,MAD,1\n"
    ),
    "calendar.txt": (
        "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,"
        "start_date,end_date\n"
        "WK,1,1,1,1,1,0,0,20240101,20241231\n"
    ),
    "calendar_dates.txt": (
        "service_id,date,exception_type\n"
        "HOL,20240106,1\n"
        "WK,20240101,2\n"
    ),
}


def _zip_bytes(prefix: str = "") -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, body in TABLES.items():
            archive.writestr(prefix + name, body)
    return buf.getvalue()


def _write_dir(base: Path) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    for name, body in TABLES.items():
        # Feeds exported from spreadsheets often carry a BOM.
        (base / name).write_text("\ufeff" + body, encoding="utf-8")
    return base


def _assert_schedule(store) -> None:
    assert set(store.stops_by_id) == {"MAD", "GUA"}
    assert store.stops_by_id["MAD"].location.lat == pytest.approx(40.4065)
    assert store.routes_by_id["AVE1"].color == "6E2585"
    assert store.trips_by_id["T1"].short_name == "03063"
    assert store.trips_by_id["T2"].short_name is None

    t1 = store.stop_times_by_trip["T1"]
    assert [st.stop_id for st in t1] == ["MAD", "GUA"]
    assert [st.departure_s for st in t1] == [28800, 30300]
    assert t1[0].departure_time == "08:00:00"
    assert "GHOST" not in store.stop_times_by_trip

    rule = store.calendar_by_service["WK"]
    assert rule.monday and not rule.saturday
    assert (rule.start_date, rule.end_date) == (20240101, 20241231)
    assert store.exceptions_by_service["HOL"][0].exception_type is ExceptionType.ADDED


def test_local_repository_reads_directory(tmp_path: Path) -> None:
    repo = LocalGtfsRepository(base_path=_write_dir(tmp_path / "gtfs"))
    _assert_schedule(repo.load_schedule())


def test_local_repository_reads_nested_zip(tmp_path: Path) -> None:
    path = tmp_path / "google_transit.zip"
    path.write_bytes(_zip_bytes(prefix="google_transit/"))

    store = LocalGtfsRepository(base_path=path).load_schedule()

    _assert_schedule(store)
    # Jan 1st: WK removed. Jan 2nd: WK runs. Jan 6th: HOL added.
    assert resolve_active_trips(store, date(2024, 1, 1)) == frozenset()
    assert resolve_active_trips(store, date(2024, 1, 2)) == {"T1"}
    assert resolve_active_trips(store, date(2024, 1, 6)) == {"T2"}


def test_local_repository_uses_env_path(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("GTFS_PATH", str(_write_dir(tmp_path / "env")))
    _assert_schedule(LocalGtfsRepository().load_schedule())


def test_missing_tables_are_logged_and_empty(tmp_path: Path, caplog) -> None:
    base = tmp_path / "partial"
    base.mkdir()
    (base / "stops.txt").write_text(TABLES["stops.txt"], encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        store = LocalGtfsRepository(base_path=base).load_schedule()

    assert len(store.stops_by_id) == 2
    assert store.trips_by_id == {}
    assert store.calendar_by_service == {}
    assert "calendar_dates.txt not found" in caplog.text


def test_local_repository_missing_path(tmp_path: Path) -> None:
    with pytest.raises(ScheduleUnavailable):
        LocalGtfsRepository(base_path=tmp_path / "nope").load_schedule()


def test_local_repository_rejects_non_zip_file(tmp_path: Path) -> None:
    path = tmp_path / "feed.zip"
    path.write_text("not a zip", encoding="utf-8")

    with pytest.raises(ScheduleUnavailable):
        LocalGtfsRepository(base_path=path).load_schedule()


def test_http_repository_downloads_archive() -> None:
    payload = _zip_bytes()

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url == httpx.URL("https://example.test/google_transit.zip")
        return httpx.Response(200, content=payload)

    repo = HttpGtfsRepository(
        url="https://example.test/google_transit.zip",
        transport=httpx.MockTransport(handler),
    )

    _assert_schedule(repo.load_schedule())


def test_http_repository_wraps_http_errors() -> None:
    repo = HttpGtfsRepository(
        url="https://example.test/missing.zip",
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )

    with pytest.raises(ScheduleUnavailable):
        repo.load_schedule()


def test_http_repository_requires_url(monkeypatch) -> None:
    monkeypatch.delenv("GTFS_URL", raising=False)

    with pytest.raises(ScheduleUnavailable):
        HttpGtfsRepository().load_schedule()


def test_http_repository_timeout_env_applies_only_by_default(monkeypatch) -> None:
    monkeypatch.setenv("GTFS_HTTP_TIMEOUT_S", "5")

    assert HttpGtfsRepository(url="https://example.test/a.zip").timeout_s == 5.0
    explicit = HttpGtfsRepository(url="https://example.test/a.zip", timeout_s=12.0)
    assert explicit.timeout_s == 12.0

    monkeypatch.delenv("GTFS_HTTP_TIMEOUT_S")
    assert HttpGtfsRepository(url="https://example.test/a.zip").timeout_s == 60.0
