"""
Practice session core: curriculum, capture surface, verification and
the feedback state machine that ties them together.
"""

from .state import (
    FeedbackState,
    Tool,
    CueKind,
    EventKind,
    CheckResult,
    ScoreLedger,
    SessionTimings,
    SessionEvent,
)
from .syllables import Syllable, Curriculum, generate_syllables, turkish_lower
from .surface import CaptureSurface, Bounds, Snapshot
from .verification import VerificationGateway, FAILURE_REASON
from .timers import TimerScope
from .controller import PracticeSession

__all__ = [
    'FeedbackState',
    'Tool',
    'CueKind',
    'EventKind',
    'CheckResult',
    'ScoreLedger',
    'SessionTimings',
    'SessionEvent',
    'Syllable',
    'Curriculum',
    'generate_syllables',
    'turkish_lower',
    'CaptureSurface',
    'Bounds',
    'Snapshot',
    'VerificationGateway',
    'FAILURE_REASON',
    'TimerScope',
    'PracticeSession',
]
