from __future__ import annotations

from datetime import date, timedelta

from src.punch_clock.punch_clock.punches.mysql_punch_repository import MySQLPunchRepository

SMALLINT_MIN, SMALLINT_MAX = -32768, 32767


class PunchTable:
    """Just enough of the punches table for update_ordinals: unique day key and SMALLINT ordinal."""

    def __init__(self):
        self.rows: dict[str, list] = {}
        self.keys: set = set()
        self.committed = False

    def add(self, punch_id: str, work_date: date, ordinal: int) -> None:
        self._claim(("org-1", "worker-1", work_date, ordinal))
        self.rows[punch_id] = ["org-1", "worker-1", work_date, ordinal]

    def _claim(self, key) -> None:
        if not SMALLINT_MIN <= key[3] <= SMALLINT_MAX:
            raise ValueError(f"ordinal {key[3]} out of range")
        if key in self.keys:
            raise ValueError(f"duplicate {key}")
        self.keys.add(key)

    def move(self, punch_id: str, work_date: date, ordinal: int) -> None:
        row = self.rows[punch_id]
        self.keys.discard(tuple(row))
        self._claim((row[0], row[1], work_date, ordinal))
        row[2], row[3] = work_date, ordinal

    def connect(self):
        return FakeConnection(self)


class FakeConnection:
    def __init__(self, table: PunchTable):
        self._table = table

    def cursor(self, dictionary: bool = True):
        return FakeCursor(self._table)

    def commit(self):
        self._table.committed = True

    def rollback(self):
        pass

    def close(self):
        pass


class FakeCursor:
    def __init__(self, table: PunchTable):
        self._table = table
        self.rowcount = 0

    def execute(self, sql: str, params=()):
        if "-1 - ordinal" in sql:
            [punch_id] = params
            row = self._table.rows[punch_id]
            if row[3] >= 0:
                self._table.move(punch_id, row[2], -1 - row[3])
        else:
            ordinal, work_date, punch_id = params
            self._table.move(punch_id, work_date, ordinal)
        self.rowcount = 1

    def close(self):
        pass


def test_backfill_of_a_large_table_stays_in_ordinal_range():
    table = PunchTable()
    first = date(2000, 1, 1)
    changes = []
    for d in range(10_000):
        day = first + timedelta(days=d)
        for ordinal in range(1, 5):
            punch_id = f"{d}-{ordinal}"
            table.add(punch_id, day, ordinal)
            # reversed order: every target ordinal is held by another row
            changes.append((punch_id, day, 5 - ordinal))

    updated = MySQLPunchRepository(table).update_ordinals(changes)

    assert updated == 40_000
    assert table.committed
    assert table.rows["0-1"][3] == 4
    assert table.rows["9999-4"][3] == 1


def test_backfill_handles_zero_ordinals_and_day_moves():
    table = PunchTable()
    table.add("a", date(2026, 2, 10), 0)
    table.add("b", date(2026, 2, 11), 0)
    table.add("c", date(2026, 2, 11), 1)

    updated = MySQLPunchRepository(table).update_ordinals(
        [("a", date(2026, 2, 10), 1), ("b", date(2026, 2, 10), 2), ("c", date(2026, 2, 11), 1)]
    )

    assert updated == 3
    assert table.rows["b"][2:] == [date(2026, 2, 10), 2]
    assert sorted(r[3] for r in table.rows.values()) == [1, 1, 2]


def test_empty_backfill_touches_nothing():
    table = PunchTable()

    assert MySQLPunchRepository(table).update_ordinals([]) == 0
    assert table.committed is False
