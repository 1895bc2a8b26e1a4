"""
Handles all database interactions for the orgchart activity log.
"""
import logging
import os
import sqlite3
from typing import Dict, List, Optional

DB_FILE = os.getenv("DB_FILE", "orgchart.db")


class DatabaseManager:
    """Manages the SQLite activity log of hierarchy events."""

    def __init__(self, db_file=DB_FILE):
        try:
            self.conn = sqlite3.connect(db_file, check_same_thread=False)
            self._create_tables()
            logging.debug(f"Database connection established: {db_file}")
        except Exception as e:
            logging.error(f"Failed to initialize database: {e}", exc_info=True)
            raise

    def _create_tables(self):
        """Creates all necessary tables if they don't already exist."""
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS hierarchy_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                event_type TEXT NOT NULL,
                record_id TEXT,
                message TEXT,
                status TEXT
            )
        """)
        self.conn.commit()

    def log_event(self, event_type: str, message: str, record_id: Optional[str] = None, status: str = "info"):
        """Log a hierarchy event (load, removal, validation failure, etc.)."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("""
                INSERT INTO hierarchy_events (event_type, record_id, message, status)
                VALUES (?, ?, ?, ?)
            """, (event_type, None if record_id is None else str(record_id), message, status))
            self.conn.commit()
            logging.debug(f"Logged hierarchy event: {event_type} - {message}")
        except Exception as e:
            logging.error(f"Failed to log hierarchy event: {e}", exc_info=True)
            raise

    def get_events(self, limit: int = 100, event_type: Optional[str] = None) -> List[Dict]:
        """Get hierarchy events, newest first, optionally filtered by event_type."""
        try:
            cursor = self.conn.cursor()
            query = """
                SELECT id, timestamp, event_type, record_id, message, status
                FROM hierarchy_events
            """
            params = []
            if event_type:
                query += " WHERE event_type = ?"
                params.append(event_type)
            query += " ORDER BY id DESC LIMIT ?"
            params.append(limit)

            cursor.execute(query, params)
            rows = cursor.fetchall()
            return [
                {
                    "id": row[0],
                    "timestamp": row[1],
                    "event_type": row[2],
                    "record_id": row[3],
                    "message": row[4],
                    "status": row[5]
                }
                for row in rows
            ]
        except Exception as e:
            logging.error(f"Failed to get hierarchy events: {e}", exc_info=True)
            raise

    def close(self):
        """Closes the database connection."""
        self.conn.close()
