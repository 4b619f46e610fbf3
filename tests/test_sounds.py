"""Tests for sound synthesis, SoundManager playback and SoundFeedback.

Covers:
- Cue and ambient generators produce valid WAV data
- SoundManager WAV caching, volume, enable/disable, ambient looping
- SoundFeedback mapping of impact / success / ambient calls
"""

from __future__ import annotations

import io
import wave

import pytest
from PyQt6.QtMultimedia import QSoundEffect

from zentime.audio.sounds import (
    SoundManager,
    AmbientSound,
    CUE_NAMES,
    SAMPLE_RATE,
    _generate_start_bell,
    _generate_end_bell,
    _generate_phase_tick,
    _generate_rain,
    _generate_brown_noise,
    _generate_om_tone,
)
from zentime.audio.feedback import SoundFeedback


ALL_GENERATORS = [
    _generate_start_bell,
    _generate_end_bell,
    _generate_phase_tick,
    _generate_rain,
    _generate_brown_noise,
    _generate_om_tone,
]


@pytest.fixture(scope="module")
def sounds_dir(tmp_path_factory):
    """One synthesised cache shared by every SoundManager in this module."""
    return tmp_path_factory.mktemp("sounds")


# ═══════════════════════════════════════════════════════════════════════
#  SOUND SYNTHESIS
# ═══════════════════════════════════════════════════════════════════════


class TestSoundGeneration:
    """Test that each generator produces valid WAV bytes."""

    @pytest.mark.parametrize("gen_fn", ALL_GENERATORS)
    def test_generator_produces_wav(self, gen_fn):
        data = gen_fn()
        assert isinstance(data, bytes)
        assert len(data) > 100
        assert data[:4] == b"RIFF"

    @pytest.mark.parametrize("gen_fn", ALL_GENERATORS)
    def test_wav_is_parseable(self, gen_fn):
        with wave.open(io.BytesIO(gen_fn()), "rb") as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == SAMPLE_RATE
            assert wf.getnframes() > 0

    @pytest.mark.parametrize("gen_fn, min_seconds", [
        (_generate_rain, 7.0),
        (_generate_brown_noise, 7.0),
        (_generate_om_tone, 9.9),
    ])
    def test_ambient_beds_are_long_enough_to_loop(self, gen_fn, min_seconds):
        with wave.open(io.BytesIO(gen_fn()), "rb") as wf:
            assert wf.getnframes() / wf.getframerate() >= min_seconds

    def test_noise_is_deterministic(self):
        assert _generate_rain() == _generate_rain()
        assert _generate_brown_noise(seed=3) != _generate_brown_noise(seed=4)

    def test_phase_tick_is_short(self):
        with wave.open(io.BytesIO(_generate_phase_tick()), "rb") as wf:
            assert wf.getnframes() / wf.getframerate() < 0.2


# ═══════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════


@pytest.mark.usefixtures("qapp")
class TestSoundManager:
    def test_create(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        assert mgr.enabled is True
        assert mgr.current_ambient == AmbientSound.NONE

    def test_wav_files_generated(self, sounds_dir):
        SoundManager(parent=None, sounds_dir=sounds_dir)
        for name in CUE_NAMES:
            path = sounds_dir / f"{name}.wav"
            assert path.exists(), f"Missing WAV: {name}"
        for sound in (AmbientSound.RAIN, AmbientSound.BROWN_NOISE, AmbientSound.OM_TONE):
            assert (sounds_dir / f"{sound.file_stem}.wav").exists()

    def test_all_effects_loaded(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        for name in CUE_NAMES:
            assert name in mgr._effects
        assert set(mgr._ambient) == {
            AmbientSound.RAIN, AmbientSound.BROWN_NOISE, AmbientSound.OM_TONE,
        }

    def test_ambient_effects_loop_forever(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        for effect in mgr._ambient.values():
            assert effect.loopCount() == QSoundEffect.Loop.Infinite.value

    def test_set_volume_clamps(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.set_volume(30)
        assert mgr.volume == 30
        mgr.set_volume(200)
        assert mgr.volume == 100
        mgr.set_volume(-10)
        assert mgr.volume == 0

    def test_set_ambient_volume(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.set_ambient_volume(20)
        assert mgr.ambient_volume == 20
        mgr.set_ambient_volume(150)
        assert mgr.ambient_volume == 100

    def test_play_invalid_name_no_crash(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.play("nonexistent_sound")

    def test_play_ambient_tracks_current(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.play_ambient(AmbientSound.RAIN)
        assert mgr.current_ambient == AmbientSound.RAIN
        mgr.play_ambient(AmbientSound.OM_TONE)
        assert mgr.current_ambient == AmbientSound.OM_TONE
        mgr.stop_ambient()
        assert mgr.current_ambient == AmbientSound.NONE

    def test_play_ambient_none_stops(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.play_ambient(AmbientSound.BROWN_NOISE)
        mgr.play_ambient(AmbientSound.NONE)
        assert mgr.current_ambient == AmbientSound.NONE

    def test_disabled_manager_plays_no_ambient(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.set_enabled(False)
        mgr.play("start_bell")
        mgr.play_ambient(AmbientSound.RAIN)
        assert mgr.current_ambient == AmbientSound.NONE

    def test_disabling_stops_ambient(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.play_ambient(AmbientSound.RAIN)
        mgr.set_enabled(False)
        assert mgr.current_ambient == AmbientSound.NONE

    def test_reenabling_restores_selected_ambient(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.play_ambient(AmbientSound.OM_TONE)
        mgr.set_enabled(False)
        assert mgr.current_ambient == AmbientSound.NONE
        assert mgr.selected_ambient == AmbientSound.OM_TONE
        mgr.set_enabled(True)
        assert mgr.current_ambient == AmbientSound.OM_TONE

    def test_choice_made_while_muted_starts_on_unmute(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.set_enabled(False)
        mgr.play_ambient(AmbientSound.RAIN)
        mgr.set_enabled(True)
        assert mgr.current_ambient == AmbientSound.RAIN

    def test_stopped_ambient_stays_stopped_on_unmute(self, sounds_dir):
        mgr = SoundManager(parent=None, sounds_dir=sounds_dir)
        mgr.play_ambient(AmbientSound.RAIN)
        mgr.set_enabled(False)
        mgr.stop_ambient()
        mgr.set_enabled(True)
        assert mgr.current_ambient == AmbientSound.NONE
        assert mgr.selected_ambient == AmbientSound.NONE

    def test_ambient_display_names(self):
        assert [s.display_name for s in AmbientSound] == [
            "None", "Rain", "Brown Noise", "Om Tone",
        ]


# ═══════════════════════════════════════════════════════════════════════
#  SOUND FEEDBACK
# ═══════════════════════════════════════════════════════════════════════


class _RecordingSounds:
    def __init__(self):
        self.played: list[str] = []
        self.ambient: list = []

    def play(self, name):
        self.played.append(name)

    def play_ambient(self, sound):
        self.ambient.append(sound)

    def stop_ambient(self):
        self.ambient.append(None)


class TestSoundFeedback:
    def test_impacts_map_to_cues(self):
        sounds = _RecordingSounds()
        fb = SoundFeedback(sounds)
        fb.notify_impact("medium")
        fb.notify_impact("light")
        fb.notify_success()
        assert sounds.played == ["start_bell", "phase_tick", "end_bell"]

    def test_unknown_impact_kind(self):
        fb = SoundFeedback(_RecordingSounds())
        with pytest.raises(ValueError):
            fb.notify_impact("heavy")

    def test_ambient_ids_become_enum_members(self):
        sounds = _RecordingSounds()
        fb = SoundFeedback(sounds)
        fb.play_ambient("brown_noise")
        fb.stop_ambient()
        assert sounds.ambient == [AmbientSound.BROWN_NOISE, None]

    def test_unknown_ambient_id(self):
        fb = SoundFeedback(_RecordingSounds())
        with pytest.raises(ValueError):
            fb.play_ambient("whale_song")
