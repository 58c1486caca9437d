#!/usr/bin/env python3
"""
State types for a practice session.
Feedback phases, tools, verdicts, scoring and the events a session emits.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from ..db.profiles import ProgressBucket

if TYPE_CHECKING:
    from ..db.profiles import Profile
    from .syllables import Syllable


class FeedbackState(Enum):
    """Feedback phases within one turn"""
    IDLE = 'IDLE'            # Drawing; controls live
    CHECKING = 'CHECKING'    # Waiting on the classifier
    CORRECT = 'CORRECT'      # Celebrating before moving on
    WRONG = 'WRONG'          # Showing the miss before a retry


class Tool(Enum):
    """Capture surface tool modes"""
    INK = 'ink'
    ERASE = 'erase'


class CueKind(Enum):
    """Short feedback sounds"""
    CORRECT = 'correct'
    WRONG = 'wrong'
    SKIP = 'skip'


class EventKind(Enum):
    """What a SessionEvent reports"""
    STATE = 'state'        # Feedback state changed
    NOTICE = 'notice'      # Something for the learner to read
    TURN = 'turn'          # A new syllable is up
    VERDICT = 'verdict'    # A classifier verdict was applied
    PROFILE = 'profile'    # The active profile was updated


@dataclass(frozen=True)
class CheckResult:
    """A classifier verdict"""
    is_correct: bool
    reason: Optional[str] = None


@dataclass
class ScoreLedger:
    """Success counters for the current session only"""
    unassisted_correct: int = 0   # Written from the audio prompt alone
    assisted_correct: int = 0     # Written after peeking at the hint

    def record(self, bucket: ProgressBucket):
        """Credit one success to the matching counter"""
        if ProgressBucket(bucket) is ProgressBucket.HINT:
            self.assisted_correct += 1
        else:
            self.unassisted_correct += 1

    @property
    def total(self) -> int:
        return self.unassisted_correct + self.assisted_correct


@dataclass(frozen=True)
class SessionTimings:
    """Fixed delays, in seconds"""
    celebration_delay: float = 2.5
    retry_delay: float = 1.5
    pronounce_delay: float = 0.5

    @classmethod
    def from_config(cls) -> 'SessionTimings':
        """Build timings from the user's config file"""
        from ..config import get_config_value
        return cls(
            celebration_delay=float(get_config_value('celebration_delay')),
            retry_delay=float(get_config_value('retry_delay')),
            pronounce_delay=float(get_config_value('pronounce_delay')),
        )


@dataclass(frozen=True)
class SessionEvent:
    """Something a session tells its listeners"""
    kind: EventKind
    state: FeedbackState
    syllable: 'Syllable'
    message: str = ''
    result: Optional[CheckResult] = None
    profile: Optional['Profile'] = None
