"""Audio package."""

from .sounds import SoundManager, AmbientSound, CUE_NAMES
from .feedback import SoundFeedback

__all__ = ["SoundManager", "AmbientSound", "CUE_NAMES", "SoundFeedback"]
