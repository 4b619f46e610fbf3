"""Feedback collaborator backed by :class:`SoundManager`.

Maps the engines' haptic-style vocabulary onto synthesised cues:

=================  ==============
call               cue
=================  ==============
impact "medium"    ``start_bell``
impact "light"     ``phase_tick``
success            ``end_bell``
=================  ==============
"""

from __future__ import annotations

from .sounds import AmbientSound, SoundManager

IMPACT_CUES: dict[str, str] = {
    "medium": "start_bell",
    "light": "phase_tick",
}
SUCCESS_CUE = "end_bell"


class SoundFeedback:
    def __init__(self, sounds: SoundManager) -> None:
        self._sounds = sounds

    def notify_impact(self, kind: str = "medium") -> None:
        try:
            cue = IMPACT_CUES[kind]
        except KeyError:
            raise ValueError(f"unknown impact kind {kind!r}") from None
        self._sounds.play(cue)

    def notify_success(self) -> None:
        self._sounds.play(SUCCESS_CUE)

    def play_ambient(self, sound_id: str) -> None:
        self._sounds.play_ambient(AmbientSound(sound_id))

    def stop_ambient(self) -> None:
        self._sounds.stop_ambient()
