"""Learner profile persistence."""

from .profiles import ProfileStore, Profile, ProgressBucket, AVATARS

__all__ = ["ProfileStore", "Profile", "ProgressBucket", "AVATARS"]
