"""Optional enrichment collaborators: dictionary, translation, speech."""

from .assist_language import AssistLanguagePreference
from .dictionary import DictionaryClient
from .lookup import LookupController, LookupResult
from .speech import NullSpeechPlayer, SpeechPlayer
from .translator import TranslationClient

__all__ = [
    "AssistLanguagePreference",
    "DictionaryClient",
    "LookupController",
    "LookupResult",
    "NullSpeechPlayer",
    "SpeechPlayer",
    "TranslationClient",
]
