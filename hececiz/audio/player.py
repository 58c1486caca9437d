#!/usr/bin/env python3
"""
Pronunciation and feedback-cue playback.

Pronouncing prefers a recorded clip named after the lowercased syllable
(e.g. "çö.mp3") and falls back to offline speech synthesis. Every call
returns immediately; failures are logged and otherwise ignored.
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..practice.state import CueKind
from ..practice.syllables import turkish_lower
from .tones import SAMPLE_RATE, render_cue

logger = logging.getLogger(__name__)


class AudioPlayer(ABC):
    """Fire-and-forget audio capability used by a practice session"""

    @abstractmethod
    def pronounce(self, text: str):
        """Say a syllable out loud"""
        pass

    @abstractmethod
    def play_cue(self, cue: CueKind):
        """Play a short feedback sound"""
        pass

    def close(self):
        pass


class SilentAudioPlayer(AudioPlayer):
    """Plays nothing"""

    def pronounce(self, text: str):
        logger.debug("(silent) pronounce %s", text)

    def play_cue(self, cue: CueKind):
        logger.debug("(silent) cue %s", cue.value)


class PygameAudioPlayer(AudioPlayer):
    """Recorded clips and cue tones through pygame, speech through pyttsx3"""

    def __init__(self, clips_dir: Optional[str] = None, speech_rate: float = 0.8):
        self.clips_dir = Path(clips_dir).expanduser() if clips_dir else None
        self.speech_rate = speech_rate
        self._cue_sounds: Dict[CueKind, object] = {}
        self._speaking = threading.Lock()
        self._pygame = None
        self._init_mixer()

    def _init_mixer(self):
        os.environ.setdefault('PYGAME_HIDE_SUPPORT_PROMPT', '1')
        try:
            import pygame  # local import so a missing audio stack only disables sound
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1, buffer=512)
            self._pygame = pygame
        except Exception as exc:
            logger.warning("Audio mixer unavailable (%s); clips and cues disabled", exc)
            self._pygame = None

    @property
    def mixer_available(self) -> bool:
        return self._pygame is not None

    def clip_path(self, text: str) -> Optional[Path]:
        """Recorded clip for a syllable, if one exists"""
        if self.clips_dir is None:
            return None
        path = self.clips_dir / f"{turkish_lower(text)}.mp3"
        return path if path.is_file() else None

    def pronounce(self, text: str):
        clip = self.clip_path(text)
        if clip is not None and self._pygame is not None:
            try:
                self._pygame.mixer.music.load(str(clip))
                self._pygame.mixer.music.play()
                return
            except Exception as exc:
                logger.warning("Could not play %s (%s); using speech", clip.name, exc)

        thread = threading.Thread(target=self._speak, args=(text,))
        thread.daemon = True
        thread.start()

    def _speak(self, text: str):
        # runAndWait blocks; a second request while speaking is dropped
        if not self._speaking.acquire(blocking=False):
            return
        try:
            import pyttsx3
            engine = pyttsx3.init()
            rate = engine.getProperty('rate') or 200
            engine.setProperty('rate', int(rate * self.speech_rate))
            engine.say(turkish_lower(text))
            engine.runAndWait()
        except Exception as exc:
            logger.warning("Speech synthesis failed for %s: %s", text, exc)
        finally:
            self._speaking.release()

    def play_cue(self, cue: CueKind):
        if self._pygame is None:
            return
        try:
            sound = self._cue_sounds.get(cue)
            if sound is None:
                sound = self._pygame.mixer.Sound(buffer=render_cue(cue).tobytes())
                self._cue_sounds[cue] = sound
            sound.play()
        except Exception as exc:
            logger.warning("Cue %s failed: %s", cue.value, exc)

    def close(self):
        if self._pygame is not None:
            try:
                self._pygame.mixer.quit()
            except Exception as exc:
                logger.debug("Mixer shutdown: %s", exc)
            self._pygame = None


def create_audio_player(enabled: bool = True) -> AudioPlayer:
    """Player for the configured clip directory, or a silent one"""
    if not enabled:
        return SilentAudioPlayer()
    from ..config import get_config_value
    return PygameAudioPlayer(clips_dir=get_config_value('audio_dir'))
