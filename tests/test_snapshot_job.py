"""Unit tests for the periodic snapshot: run_snapshot and the app.snapshot CLI."""

import unittest
from unittest.mock import MagicMock, patch

from app.core.clock import FrozenClock
from app.models import StatVersion
from app.services.snapshot_job import run_snapshot
from app.services.stats_cache import STATS_KEY, StatsCache, read_system_stats
from tests.factories import T0, add_finding, add_project, make_session


class TestRunSnapshot(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session()
        self.clock = FrozenClock(T0)
        self.project = add_project(self.session, "payments-api")
        self.other = add_project(self.session, "billing-web")
        add_finding(self.session, self.project)

    def tearDown(self) -> None:
        self.session.close()

    def test_snapshots_every_project_and_system(self) -> None:
        settings = MagicMock()
        settings.SNAPSHOT_INCLUDE_PROJECTS = True
        written = run_snapshot(self.session, settings, self.clock)
        self.assertEqual(written, 3)
        self.assertEqual(self.session.query(StatVersion).count(), 3)
        system = self.session.query(StatVersion).filter(StatVersion.project_id.is_(None)).one()
        self.assertEqual(system.open_findings, 1)

    def test_system_only(self) -> None:
        settings = MagicMock()
        settings.SNAPSHOT_INCLUDE_PROJECTS = False
        self.assertEqual(run_snapshot(self.session, settings, self.clock), 1)
        self.assertEqual(self.session.query(StatVersion).count(), 1)

    def test_repeated_runs_append(self) -> None:
        settings = MagicMock()
        settings.SNAPSHOT_INCLUDE_PROJECTS = False
        run_snapshot(self.session, settings, self.clock)
        run_snapshot(self.session, settings, self.clock)
        self.assertEqual(self.session.query(StatVersion).count(), 2)

    def test_republishes_cached_stats(self) -> None:
        settings = MagicMock()
        settings.SNAPSHOT_INCLUDE_PROJECTS = False
        cache = StatsCache(ttl_seconds=60)
        cache.write(STATS_KEY, {"open_findings": 0})

        run_snapshot(self.session, settings, self.clock, cache=cache)

        self.assertEqual(cache.read(STATS_KEY)["open_findings"], 1)
        self.assertEqual(read_system_stats(self.session, cache)["open_findings"], 1)


class TestSnapshotCli(unittest.TestCase):
    """app.snapshot.main returns an exit code and always closes the session."""

    def test_success(self) -> None:
        from app import snapshot

        db = MagicMock()
        with patch.object(snapshot, "SessionLocal", return_value=db), patch.object(
            snapshot, "run_snapshot", return_value=2
        ) as run:
            self.assertEqual(snapshot.main(), 0)
        run.assert_called_once()
        db.close.assert_called_once()

    def test_failure(self) -> None:
        from app import snapshot

        db = MagicMock()
        with patch.object(snapshot, "SessionLocal", return_value=db), patch.object(
            snapshot, "run_snapshot", side_effect=RuntimeError("db down")
        ):
            with self.assertLogs("app.snapshot", level="ERROR"):
                self.assertEqual(snapshot.main(), 1)
        db.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
