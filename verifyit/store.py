"""
Subscriber Store — SQLite persistence for newsletter alerts.

Holds the newsletter subscriber list and the single alert-state row
(last alert time + content signature) used for cooldown and
duplicate suppression. Emails are stored trimmed and lower-cased.
"""

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional


@dataclass(frozen=True)
class AlertState:
    """When the last fraud alert went out, and for which content."""
    last_alert_at: Optional[datetime] = None
    last_signature: Optional[str] = None


@dataclass(frozen=True)
class Subscriber:
    email: str
    active: bool
    subscribed_at: str
    alerts_received: int


def normalize_email(email: str) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


class SubscriberStore:
    """Newsletter subscribers and alert state backed by SQLite."""

    def __init__(self, db_path: str = "verifyit.db"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS subscribers (
                    email TEXT PRIMARY KEY,
                    subscribed_at TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1,
                    alerts_received INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS alert_state (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    last_alert_at TEXT,
                    last_signature TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_subscribers_active
                ON subscribers(active)
            """)
            conn.commit()

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    # --- Subscribers ---

    def get_subscriber(self, email: str) -> Optional[Subscriber]:
        with self._get_conn() as conn:
            row = conn.execute(
                """SELECT email, active, subscribed_at, alerts_received
                   FROM subscribers WHERE email = ?""",
                (normalize_email(email),),
            ).fetchone()
        if row is None:
            return None
        return Subscriber(
            email=row[0], active=bool(row[1]),
            subscribed_at=row[2], alerts_received=row[3],
        )

    def create_subscriber(self, email: str) -> None:
        with self._lock:
            with self._get_conn() as conn:
                conn.execute(
                    """INSERT INTO subscribers (email, subscribed_at, active, alerts_received)
                       VALUES (?, ?, 1, 0)""",
                    (normalize_email(email), datetime.now(timezone.utc).isoformat()),
                )
                conn.commit()

    def reactivate_subscriber(self, email: str) -> None:
        with self._lock:
            with self._get_conn() as conn:
                conn.execute(
                    "UPDATE subscribers SET active = 1 WHERE email = ?",
                    (normalize_email(email),),
                )
                conn.commit()

    def ensure_active(self, email: str) -> bool:
        """Create or reactivate `email`. Returns False if it was already active."""
        existing = self.get_subscriber(email)
        if existing is None:
            self.create_subscriber(email)
            return True
        if not existing.active:
            self.reactivate_subscriber(email)
            return True
        return False

    def active_emails(self) -> list[str]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT email FROM subscribers WHERE active = 1 ORDER BY subscribed_at"
            ).fetchall()
        return [r[0] for r in rows]

    def increment_alerts(self, emails: Iterable[str]) -> None:
        normalized = [(normalize_email(e),) for e in emails]
        if not normalized:
            return
        with self._lock:
            with self._get_conn() as conn:
                conn.executemany(
                    """UPDATE subscribers SET alerts_received = alerts_received + 1
                       WHERE email = ?""",
                    normalized,
                )
                conn.commit()

    def stats(self) -> dict:
        with self._get_conn() as conn:
            total, active = conn.execute(
                "SELECT COUNT(*), COALESCE(SUM(active), 0) FROM subscribers"
            ).fetchone()
        return {"total_subscribers": total, "active_subscribers": active}

    # --- Alert state ---

    def get_alert_state(self) -> AlertState:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT last_alert_at, last_signature FROM alert_state WHERE id = 1"
            ).fetchone()
        if row is None:
            return AlertState()
        last_at = datetime.fromisoformat(row[0]) if row[0] else None
        return AlertState(last_alert_at=last_at, last_signature=row[1])

    def save_alert_state(self, state: AlertState) -> None:
        last_at = state.last_alert_at.isoformat() if state.last_alert_at else None
        with self._lock:
            with self._get_conn() as conn:
                conn.execute(
                    """INSERT INTO alert_state (id, last_alert_at, last_signature)
                       VALUES (1, ?, ?)
                       ON CONFLICT(id) DO UPDATE SET
                           last_alert_at = excluded.last_alert_at,
                           last_signature = excluded.last_signature""",
                    (last_at, state.last_signature),
                )
                conn.commit()
