#!/usr/bin/env python3
"""
Syllable curriculum.
Builds every two-letter Turkish syllable from fixed alphabets, drops the
blocked ones and shuffles the rest into a cyclic practice order.
"""

import random
import uuid
from dataclasses import dataclass
from typing import Iterator, List, Optional


VOWELS = ['A', 'E', 'I', 'İ', 'O', 'Ö', 'U', 'Ü']
CONSONANTS = ['B', 'C', 'Ç', 'D', 'F', 'G', 'H', 'K', 'L', 'M', 'N', 'P', 'R', 'S', 'Ş', 'T', 'V', 'Y', 'Z']

# Words a child should not be asked to write
BLOCKED_SYLLABLES = frozenset([
    'AM', 'GÖT', 'SİK', 'PİÇ', 'YAR', 'MEM', 'ÇİŞ', 'KAK', 'BOK',
])

# Both orders of every vowel/consonant pair, before blocking
FULL_SIZE = 2 * len(VOWELS) * len(CONSONANTS)

_TURKISH_LOWER = str.maketrans({'I': 'ı', 'İ': 'i'})


def turkish_lower(text: str) -> str:
    """Lowercase with Turkish dotted/dotless i rules (I -> ı, İ -> i)"""
    return text.translate(_TURKISH_LOWER).lower()


@dataclass(frozen=True)
class Syllable:
    """One two-letter unit to practice"""
    text: str
    id: str


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def syllable_texts() -> List[str]:
    """All allowed syllables in generation order: consonant+vowel, then vowel+consonant"""
    texts = [c + v for c in CONSONANTS for v in VOWELS]
    texts += [v + c for v in VOWELS for c in CONSONANTS]
    return [t for t in texts if t not in BLOCKED_SYLLABLES]


def generate_syllables(rng: Optional[random.Random] = None) -> List[Syllable]:
    """Every allowed syllable with a fresh id, in uniformly random order"""
    syllables = [Syllable(text=text, id=_new_id()) for text in syllable_texts()]
    (rng or random).shuffle(syllables)
    return syllables


class Curriculum:
    """Shuffled syllables for one session; the position wraps at the end"""

    def __init__(self, syllables: List[Syllable]):
        if not syllables:
            raise ValueError("A curriculum needs at least one syllable")
        self._syllables = list(syllables)
        self.index = 0

    @classmethod
    def generate(cls, rng: Optional[random.Random] = None) -> 'Curriculum':
        """Start a new curriculum with its own shuffle"""
        return cls(generate_syllables(rng))

    @property
    def current(self) -> Syllable:
        return self._syllables[self.index]

    def advance(self) -> Syllable:
        """Move to the next syllable, wrapping to the start"""
        self.index = (self.index + 1) % len(self._syllables)
        return self.current

    def __len__(self) -> int:
        return len(self._syllables)

    def __iter__(self) -> Iterator[Syllable]:
        return iter(self._syllables)
