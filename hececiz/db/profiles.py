#!/usr/bin/env python3
"""
Learner profile store.
Keeps one record per learner with lifetime success counters.
"""

import random
import sqlite3
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


AVATARS = ['🐶', '🐱', '🐭', '🐹', '🐰', '🦊', '🐻', '🐼', '🐨', '🐯', '🦁', '🐮', '🐷', '🐸', '🐵']


class ProgressBucket(Enum):
    """Which lifetime counter a correct answer is credited to"""
    AUDIO = 'audio'  # written from the spoken prompt alone
    HINT = 'hint'    # written after revealing the syllable


_BUCKET_COLUMNS = {
    ProgressBucket.AUDIO: 'total_correct_audio',
    ProgressBucket.HINT: 'total_correct_hint',
}


@dataclass(frozen=True)
class Profile:
    """A learner record"""
    id: str
    name: str
    avatar: str
    total_correct_audio: int = 0   # gold stars
    total_correct_hint: int = 0    # silver stars
    created_at: int = 0            # epoch milliseconds

    def to_dict(self) -> Dict:
        """Serialize profile to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'avatar': self.avatar,
            'totalCorrectAudio': self.total_correct_audio,
            'totalCorrectHint': self.total_correct_hint,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Profile':
        """Deserialize profile from dictionary"""
        return cls(
            id=str(data['id']),
            name=data['name'],
            avatar=data.get('avatar', AVATARS[0]),
            total_correct_audio=int(data.get('totalCorrectAudio', 0)),
            total_correct_hint=int(data.get('totalCorrectHint', 0)),
            created_at=int(data.get('createdAt', 0)),
        )


class ProfileStore:
    """Manages learner profiles with sqlite persistence"""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            from ..config import get_db_path
            db_path = str(get_db_path())
        self.db_path = str(db_path)
        if self.db_path != ':memory:':
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self):
        """Create database tables if they don't exist"""
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                avatar TEXT NOT NULL,
                total_correct_audio INTEGER NOT NULL DEFAULT 0,
                total_correct_hint INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL
            )
        """)
        self.conn.commit()

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> Profile:
        return Profile(
            id=row['id'],
            name=row['name'],
            avatar=row['avatar'],
            total_correct_audio=int(row['total_correct_audio']),
            total_correct_hint=int(row['total_correct_hint']),
            created_at=int(row['created_at']),
        )

    def list_profiles(self) -> List[Profile]:
        """Return all profiles, oldest first"""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM profiles ORDER BY created_at, rowid")
        return [self._row_to_profile(row) for row in cursor.fetchall()]

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Get one profile by id"""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM profiles WHERE id = ?", (profile_id,))
        row = cursor.fetchone()
        return self._row_to_profile(row) if row else None

    def create_profile(self, name: str) -> Profile:
        """Create a profile with a random avatar and zeroed counters"""
        name = name.strip()
        if not name:
            raise ValueError("Profile name cannot be empty")

        profile = Profile(
            id=uuid.uuid4().hex[:8],
            name=name,
            avatar=random.choice(AVATARS),
            created_at=int(time.time() * 1000),
        )

        cursor = self.conn.cursor()
        cursor.execute("""
            INSERT INTO profiles
            (id, name, avatar, total_correct_audio, total_correct_hint, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            profile.id,
            profile.name,
            profile.avatar,
            profile.total_correct_audio,
            profile.total_correct_hint,
            profile.created_at,
        ))
        self.conn.commit()
        return profile

    def delete_profile(self, profile_id: str) -> bool:
        """Delete a profile. Returns False if it did not exist."""
        with self.conn:
            cursor = self.conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
        return cursor.rowcount > 0

    def increment_progress(self, profile_id: str, bucket: ProgressBucket) -> Optional[Profile]:
        """
        Add one success to a profile counter and return the updated record.

        The increment and the re-read share one transaction, so concurrent
        writers never lose an update. Returns None for an unknown id.
        """
        column = _BUCKET_COLUMNS[ProgressBucket(bucket)]
        with self.conn:
            cursor = self.conn.execute(
                f"UPDATE profiles SET {column} = {column} + 1 WHERE id = ?",
                (profile_id,)
            )
            if cursor.rowcount == 0:
                return None
            row = self.conn.execute(
                "SELECT * FROM profiles WHERE id = ?", (profile_id,)
            ).fetchone()
        return self._row_to_profile(row)

    def close(self):
        """Close the database connection"""
        self.conn.close()
