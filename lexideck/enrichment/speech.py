"""Speech playback interface.

Playback itself happens outside the engine; callers fire and forget.
"""

from abc import ABC, abstractmethod


class SpeechPlayer(ABC):
    """Plays text aloud. Implementations must make `cancel` safe to call
    at any time."""

    @abstractmethod
    def speak(self, text: str) -> None:
        pass

    @abstractmethod
    def cancel(self) -> None:
        pass


class NullSpeechPlayer(SpeechPlayer):
    """Player for environments without audio output."""

    def speak(self, text: str) -> None:
        pass

    def cancel(self) -> None:
        pass
