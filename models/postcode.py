"""
Postcode directory.
Maps a postcode to its locality and coordinates for delivery pricing.
"""

import csv
from typing import Optional, Dict, Iterable

from database import get_db
from utils.validators import validate_postcode


class PostcodeDirectory:
    """Postcode lookups backed by the postcodes table."""

    def lookup(self, postcode: str) -> Optional[Dict]:
        """
        Find a postcode.

        Args:
            postcode: 4-digit postcode

        Returns:
            dict with latitude, longitude, locality or None if unknown
        """
        db = get_db()
        cursor = db.cursor()
        cursor.execute('''
            SELECT postcode, locality, latitude, longitude
            FROM postcodes WHERE postcode = ?
        ''', (postcode,))
        row = cursor.fetchone()
        return dict(row) if row else None


class StaticPostcodeDirectory:
    """In-memory postcode directory, e.g. loaded from a reference file."""

    def __init__(self, entries: Dict[str, Dict]):
        self._entries = dict(entries)

    def lookup(self, postcode: str) -> Optional[Dict]:
        entry = self._entries.get(postcode)
        if entry is None:
            return None
        return {'postcode': postcode, **entry}


def upsert_postcodes(rows: Iterable[tuple]) -> int:
    """
    Insert or replace postcode rows.

    Args:
        rows: (postcode, locality, latitude, longitude) tuples

    Returns:
        Number of rows written
    """
    db = get_db()
    rows = list(rows)
    db.executemany('''
        INSERT OR REPLACE INTO postcodes (postcode, locality, latitude, longitude)
        VALUES (?, ?, ?, ?)
    ''', rows)
    db.commit()
    return len(rows)


def import_postcodes_csv(path: str) -> int:
    """
    Load postcodes from a CSV file with a header row
    (postcode, locality, latitude, longitude).

    Rows with a postcode that is not 4 digits are skipped.

    Returns:
        Number of rows imported
    """
    rows = []
    with open(path, newline='', encoding='utf-8') as f:
        for record in csv.DictReader(f):
            postcode = (record.get('postcode') or '').strip()
            if not validate_postcode(postcode):
                continue
            rows.append((
                postcode,
                (record.get('locality') or '').strip(),
                float(record['latitude']),
                float(record['longitude']),
            ))
    return upsert_postcodes(rows)
