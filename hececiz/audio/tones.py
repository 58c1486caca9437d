#!/usr/bin/env python3
"""
Synthesized feedback cues.
Each cue is a short gliding tone rendered to signed 16-bit mono PCM.
"""

import math
from array import array
from dataclasses import dataclass

from ..practice.state import CueKind


SAMPLE_RATE = 22050
_AMP = 32767


@dataclass(frozen=True)
class ToneSpec:
    """A tone whose pitch and loudness ramp from a start value to an end value"""
    waveform: str            # sine | triangle | sawtooth
    freq_start: float
    freq_end: float
    glide_s: float           # pitch ramp length, held afterwards
    gain_start: float
    gain_end: float
    duration_s: float        # gain ramps over the whole tone
    curve: str = 'exponential'


CUE_TONES = {
    CueKind.CORRECT: ToneSpec('sine', 500.0, 1000.0, 0.1, 0.3, 0.01, 0.5),
    CueKind.SKIP: ToneSpec('triangle', 300.0, 400.0, 0.1, 0.1, 0.0, 0.2, curve='linear'),
    CueKind.WRONG: ToneSpec('sawtooth', 150.0, 100.0, 0.3, 0.3, 0.01, 0.4),
}


def _ramp(start: float, end: float, t: float, length: float, curve: str) -> float:
    if length <= 0 or t >= length:
        return end
    frac = t / length
    if curve == 'exponential' and start > 0 and end > 0:
        return start * (end / start) ** frac
    return start + (end - start) * frac


def _wave(waveform: str, phase: float) -> float:
    """One sample of a unit waveform; phase in [0, 1)"""
    if waveform == 'sawtooth':
        return 2.0 * phase - 1.0
    if waveform == 'triangle':
        return 4.0 * abs(phase - 0.5) - 1.0
    return math.sin(2.0 * math.pi * phase)


def render_tone(spec: ToneSpec, sample_rate: int = SAMPLE_RATE) -> array:
    """Render a tone to PCM samples"""
    sample_count = max(1, int(sample_rate * spec.duration_s))
    out = array('h')
    phase = 0.0
    for idx in range(sample_count):
        t = idx / float(sample_rate)
        freq = _ramp(spec.freq_start, spec.freq_end, t, spec.glide_s, spec.curve)
        gain = _ramp(spec.gain_start, spec.gain_end, t, spec.duration_s, spec.curve)
        sample = _wave(spec.waveform, phase) * gain
        out.append(int(max(-1.0, min(1.0, sample)) * _AMP))
        phase = (phase + freq / sample_rate) % 1.0
    return out


def render_cue(cue: CueKind, sample_rate: int = SAMPLE_RATE) -> array:
    return render_tone(CUE_TONES[CueKind(cue)], sample_rate)
