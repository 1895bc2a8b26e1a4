"""
Handles all network interactions with the directory service.
"""
import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from orgchart.services.hierarchy import Record, record_from_dict

# Configuration
DIRECTORY_URL = os.getenv("DIRECTORY_URL", "https://gongfetest.firebaseio.com")
DIRECTORY_FILE = os.getenv("DIRECTORY_FILE")
REQUEST_TIMEOUT_SECONDS = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))


def parse_users(payload: Any) -> List[Record]:
    """Extracts the user records from a directory payload.

    Accepts either the full directory document ({"users": [...], ...}) or a
    bare list of users. Null entries, which sparse JSON arrays produce, are skipped.
    """
    if isinstance(payload, dict):
        users = payload.get("users") or []
    elif isinstance(payload, list):
        users = payload
    else:
        raise RuntimeError(f"Unexpected directory payload of type {type(payload).__name__}")

    if isinstance(users, dict):
        # Sparse arrays come back keyed by index
        users = list(users.values())
    if not isinstance(users, list):
        raise RuntimeError("Directory payload has no list of users")

    records = []
    for entry in users:
        if entry is None:
            continue
        try:
            records.append(record_from_dict(entry))
        except (TypeError, ValueError) as e:
            raise RuntimeError(f"Invalid user entry in directory payload: {e}")
    return records


def load_records(path: str) -> List[Record]:
    """Reads user records from a local JSON file with the directory payload shape."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RuntimeError(f"Failed to read directory file {path}: {e}")
    records = parse_users(payload)
    logging.info(f"Loaded {len(records)} users from {path}")
    return records


class DirectoryClient:
    """Fetches the user directory over HTTP."""

    def __init__(self, base_url: str = DIRECTORY_URL, timeout: int = REQUEST_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_all(self) -> Dict[str, Any]:
        """Downloads the whole directory document."""
        url = f"{self.base_url}/.json"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"Failed to fetch directory from {url}: {e}")
        except ValueError as e:
            raise RuntimeError(f"Directory at {url} did not return JSON: {e}")

    def fetch_records(self) -> List[Record]:
        records = parse_users(self.fetch_all())
        logging.info(f"Fetched {len(records)} users from {self.base_url}")
        return records


class FileDirectory:
    """Serves the directory from a local JSON file, for offline use."""

    def __init__(self, path: str):
        self.path = path

    def fetch_records(self) -> List[Record]:
        return load_records(self.path)


def get_directory(url: str = DIRECTORY_URL, path: Optional[str] = DIRECTORY_FILE):
    """Returns the configured data source: a local file if one is set, else the HTTP directory."""
    if path:
        return FileDirectory(path)
    return DirectoryClient(url)
