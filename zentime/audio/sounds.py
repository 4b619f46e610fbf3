"""Sound synthesis and playback using numpy + QSoundEffect.

Every sound is generated programmatically (sine partials and filtered
noise shaped by ADSR envelopes) and cached to disk as a WAV file, so
the app ships no audio assets.

Cues (one-shot)
---------------
- ``start_bell`` : singing-bowl strike when a session begins
- ``end_bell``   : two-strike chime when a countdown finishes
- ``phase_tick`` : soft wood-block tap between breathing phases

Ambient beds (looped while selected)
------------------------------------
- ``rain``       : softened noise with scattered droplets
- ``brown_noise``: integrated (red) noise
- ``om_tone``    : 136.1 Hz drone with slow swell
"""

from __future__ import annotations

import io
import logging
import wave
from enum import Enum
from pathlib import Path

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

logger = logging.getLogger(__name__)


# ── paths ────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "ZenTime"
SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"

CUE_NAMES = (
    "start_bell",
    "end_bell",
    "phase_tick",
)

SAMPLE_RATE = 44100


class AmbientSound(Enum):
    NONE = "none"
    RAIN = "rain"
    BROWN_NOISE = "brown_noise"
    OM_TONE = "om_tone"

    @property
    def display_name(self) -> str:
        return _AMBIENT_DISPLAY[self]

    @property
    def file_stem(self) -> str:
        """Cache file name without extension; empty for NONE."""
        return _AMBIENT_FILES[self]


_AMBIENT_DISPLAY: dict[AmbientSound, str] = {
    AmbientSound.NONE: "None",
    AmbientSound.RAIN: "Rain",
    AmbientSound.BROWN_NOISE: "Brown Noise",
    AmbientSound.OM_TONE: "Om Tone",
}

_AMBIENT_FILES: dict[AmbientSound, str] = {
    AmbientSound.NONE: "",
    AmbientSound.RAIN: "rain_sound",
    AmbientSound.BROWN_NOISE: "brown_noise",
    AmbientSound.OM_TONE: "om_tone",
}


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _make_envelope(
    length: int,
    attack: int = 200,
    decay: int = 400,
    sustain_level: float = 0.7,
    release: int = 800,
) -> np.ndarray:
    """ADSR envelope (all durations in samples)."""
    env = np.ones(length, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    d_end = min(a + decay, length)
    if decay > 0 and d_end > a:
        env[a:d_end] = np.linspace(1.0, sustain_level, d_end - a)
    s_end = max(length - release, d_end)
    if s_end > d_end:
        env[d_end:s_end] = sustain_level
    if release > 0 and s_end < length:
        env[s_end:] = np.linspace(sustain_level, 0.0, length - s_end)
    return env


def _sine(freq: float, duration_s: float) -> np.ndarray:
    """Pure sine wave at *freq* Hz for *duration_s* seconds."""
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _exp_decay(length: int, time_constant_s: float) -> np.ndarray:
    t = np.arange(length) / SAMPLE_RATE
    return np.exp(-t / time_constant_s)


def _smooth(samples: np.ndarray, width: int) -> np.ndarray:
    """Moving-average low-pass."""
    kernel = np.ones(width) / width
    return np.convolve(samples, kernel, mode="same")


def _normalize(samples: np.ndarray, peak: float) -> np.ndarray:
    top = np.max(np.abs(samples))
    if top == 0:
        return samples
    return samples * (peak / top)


def _loopable(samples: np.ndarray, fade: int) -> np.ndarray:
    """Crossfade the tail into the head so the clip loops without a click."""
    ramp = np.linspace(0.0, 1.0, fade)
    out = samples[:-fade].copy()
    out[:fade] = samples[-fade:] * (1.0 - ramp) + samples[:fade] * ramp
    return out


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 numpy array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
#  CUE GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _bowl_strike(freq: float, duration_s: float, level: float) -> np.ndarray:
    """Singing-bowl partials (inharmonic, like a real bowl)."""
    partials = ((1.0, 1.0), (2.71, 0.35), (5.13, 0.12))
    tone = sum(_sine(freq * ratio, duration_s) * amp for ratio, amp in partials)
    length = len(tone)
    onset = _make_envelope(length, attack=int(SAMPLE_RATE * 0.01), decay=0,
                           sustain_level=1.0, release=0)
    return tone * onset * _exp_decay(length, duration_s / 3.5) * level


def _generate_start_bell() -> bytes:
    """Session start: one bowl strike around C5, long natural decay."""
    return _to_wav_bytes(_normalize(_bowl_strike(528.0, 2.5, 1.0), 0.6))


def _generate_end_bell() -> bytes:
    """Countdown finished: two strikes, the second a fifth higher."""
    first = _bowl_strike(528.0, 1.2, 1.0)
    second = _bowl_strike(792.0, 2.8, 0.9)
    gap = int(SAMPLE_RATE * 0.45)
    out = np.zeros(gap + len(second))
    out[:len(first)] += first
    out[gap:] += second
    return _to_wav_bytes(_normalize(out, 0.6))


def _generate_phase_tick() -> bytes:
    """Phase change: short, muted wood-block tap."""
    duration = 0.06
    tone = _sine(880.0, duration) * 0.6 + _sine(1320.0, duration) * 0.15
    env = _make_envelope(len(tone), attack=30, decay=300, sustain_level=0.2,
                         release=len(tone) - 330)
    padded = np.concatenate([tone * env, np.zeros(int(SAMPLE_RATE * 0.04))])
    return _to_wav_bytes(padded * 0.5)


# ═══════════════════════════════════════════════════════════════════════════
#  AMBIENT GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _generate_rain(seed: int = 7) -> bytes:
    """Rain: low-passed hiss plus randomly placed droplets, 8 s loop."""
    rng = np.random.default_rng(seed)
    length = int(SAMPLE_RATE * 8.0)
    bed = _smooth(rng.standard_normal(length), 6)

    drop_len = int(SAMPLE_RATE * 0.03)
    drop_env = _exp_decay(drop_len, 0.006)
    for start in rng.integers(0, length - drop_len, size=240):
        freq = rng.uniform(2500.0, 5000.0)
        drop = np.sin(2 * np.pi * freq * np.arange(drop_len) / SAMPLE_RATE)
        bed[start:start + drop_len] += drop * drop_env * rng.uniform(0.3, 1.2)

    fade = int(SAMPLE_RATE * 0.25)
    return _to_wav_bytes(_normalize(_loopable(bed, fade), 0.45))


def _generate_brown_noise(seed: int = 11) -> bytes:
    """Brown noise: 1/f amplitude spectrum, 8 s loop.

    Built in the frequency domain, so the clip is periodic and loops
    seamlessly.  Content below 20 Hz is held flat to keep it centred.
    """
    rng = np.random.default_rng(seed)
    length = int(SAMPLE_RATE * 8.0)
    bins = length // 2 + 1
    spectrum = rng.standard_normal(bins) + 1j * rng.standard_normal(bins)
    freqs = np.fft.rfftfreq(length, d=1.0 / SAMPLE_RATE)
    scale = np.zeros(bins)
    scale[1:] = 1.0 / np.maximum(freqs[1:], 20.0)
    walk = np.fft.irfft(spectrum * scale, n=length)
    return _to_wav_bytes(_normalize(walk, 0.5))


def _generate_om_tone() -> bytes:
    """Om: 136.1 Hz drone with harmonics and a 0.5 Hz swell, 10 s loop.

    Ten seconds holds a whole number of periods for every component, so
    the clip loops seamlessly without a crossfade.
    """
    duration = 10.0
    fundamental = 136.1
    drone = (
        _sine(fundamental, duration) * 1.0
        + _sine(fundamental * 2, duration) * 0.4
        + _sine(fundamental * 3, duration) * 0.15
    )
    swell = 0.8 + 0.2 * _sine(0.5, duration)
    return _to_wav_bytes(_normalize(drone * swell, 0.45))


# Map sound names to generator functions
_CUE_GENERATORS: dict[str, callable] = {
    "start_bell": _generate_start_bell,
    "end_bell": _generate_end_bell,
    "phase_tick": _generate_phase_tick,
}

_AMBIENT_GENERATORS: dict[AmbientSound, callable] = {
    AmbientSound.RAIN: _generate_rain,
    AmbientSound.BROWN_NOISE: _generate_brown_noise,
    AmbientSound.OM_TONE: _generate_om_tone,
}


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject):
    """Manages sound synthesis, caching, and playback.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        mgr.play("start_bell")
        mgr.play_ambient(AmbientSound.RAIN)
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._ambient_volume = 0.3
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        self._effects: dict[str, QSoundEffect] = {}
        self._ambient: dict[AmbientSound, QSoundEffect] = {}
        self._current_ambient: AmbientSound = AmbientSound.NONE
        self._selected_ambient: AmbientSound = AmbientSound.NONE

        self._ensure_wav_files()
        self._load_effects()

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set cue volume (0-100)."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_ambient_volume(self, level: int) -> None:
        """Set ambient bed volume (0-100)."""
        self._ambient_volume = max(0, min(level, 100)) / 100.0
        for effect in self._ambient.values():
            effect.setVolume(self._ambient_volume)

    def set_enabled(self, enabled: bool) -> None:
        """Mute or unmute.  The selected ambient bed resumes on unmute."""
        self._enabled = enabled
        if not enabled:
            self._halt_ambient()
        elif self._selected_ambient not in (AmbientSound.NONE, self._current_ambient):
            self._start_ambient(self._selected_ambient)

    def play(self, name: str) -> None:
        """Play a cue by name.  No-op if disabled or name unknown."""
        if not self._enabled:
            return
        effect = self._effects.get(name)
        if effect is None:
            logger.debug("unknown cue %r", name)
            return
        effect.play()

    def play_ambient(self, sound: AmbientSound) -> None:
        """Loop *sound* until :meth:`stop_ambient`; replaces any other bed.

        While disabled the choice is remembered and starts on re-enable.
        """
        self._selected_ambient = sound
        if sound == self._current_ambient:
            return
        self._halt_ambient()
        if sound == AmbientSound.NONE or not self._enabled:
            return
        self._start_ambient(sound)

    def stop_ambient(self) -> None:
        self._selected_ambient = AmbientSound.NONE
        self._halt_ambient()

    @property
    def volume(self) -> int:
        """Current cue volume as 0-100 integer."""
        return round(self._volume * 100)

    @property
    def ambient_volume(self) -> int:
        return round(self._ambient_volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def current_ambient(self) -> AmbientSound:
        """The bed actually playing (NONE while muted)."""
        return self._current_ambient

    @property
    def selected_ambient(self) -> AmbientSound:
        return self._selected_ambient

    # ── internal ──────────────────────────────────────────────────────

    def _start_ambient(self, sound: AmbientSound) -> None:
        effect = self._ambient.get(sound)
        if effect is None:
            logger.warning("ambient sound %s is not loaded", sound.value)
            return
        effect.play()
        self._current_ambient = sound

    def _halt_ambient(self) -> None:
        effect = self._ambient.get(self._current_ambient)
        if effect is not None:
            effect.stop()
        self._current_ambient = AmbientSound.NONE

    def _ensure_wav_files(self) -> None:
        """Generate any missing WAV files to the cache directory."""
        self._sounds_dir.mkdir(parents=True, exist_ok=True)
        for name, gen_fn in _CUE_GENERATORS.items():
            path = self._sounds_dir / f"{name}.wav"
            if not path.exists():
                path.write_bytes(gen_fn())
        for sound, gen_fn in _AMBIENT_GENERATORS.items():
            path = self._sounds_dir / f"{sound.file_stem}.wav"
            if not path.exists():
                path.write_bytes(gen_fn())

    def _load_effects(self) -> None:
        """Create QSoundEffect instances from cached WAV files."""
        for name in CUE_NAMES:
            path = self._sounds_dir / f"{name}.wav"
            if path.exists():
                self._effects[name] = self._make_effect(path, self._volume)
        for sound in _AMBIENT_GENERATORS:
            path = self._sounds_dir / f"{sound.file_stem}.wav"
            if path.exists():
                effect = self._make_effect(path, self._ambient_volume)
                effect.setLoopCount(QSoundEffect.Loop.Infinite.value)
                self._ambient[sound] = effect

    def _make_effect(self, path: Path, volume: float) -> QSoundEffect:
        effect = QSoundEffect(self)
        effect.setSource(QUrl.fromLocalFile(str(path)))
        effect.setVolume(volume)
        return effect
