"""Syllable pronunciation and feedback sounds."""

from .player import AudioPlayer, SilentAudioPlayer, PygameAudioPlayer, create_audio_player
from .tones import ToneSpec, CUE_TONES, render_cue, render_tone

__all__ = [
    'AudioPlayer',
    'SilentAudioPlayer',
    'PygameAudioPlayer',
    'create_audio_player',
    'ToneSpec',
    'CUE_TONES',
    'render_cue',
    'render_tone',
]
