import sys
from datetime import datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class StepClock:
    """Deterministic clock: every call moves one minute forward."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, 0), step: timedelta = timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


def set_admin_password(repo, password: str = "Admin#1234") -> str:
    from invtrack.repositories.sqlite_repo import SqliteRepository

    conn = repo._conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE users SET password_hash=? WHERE username='admin'",
        (SqliteRepository._hash_password(password),),
    )
    conn.commit()
    conn.close()
    return password
