"""
Keyword-based extraction of navigation and click intents from transcripts.
"""
from typing import List, Optional, Sequence

from .types import ActivateIntent, Intent, NavigateIntent


NAVIGATE_PHRASES = ("go to", "navigate to")
ACTIVATE_PHRASES = ("click", "press")


def _target_after(transcript: str, phrases: Sequence[str]) -> Optional[str]:
    """
    Text between the first occurrence of a phrase and its next occurrence.

    Phrases are tried in order; the first one with a non-empty target wins.
    """
    for phrase in phrases:
        parts = transcript.split(phrase)
        if len(parts) < 2:
            continue
        target = parts[1].strip()
        if target:
            return target
    return None


def parse_intents(transcript: str) -> List[Intent]:
    """
    Extract every intent from a transcript snapshot.

    Both rules run independently, so a transcript holding a navigation
    phrase and a click phrase yields both intents, navigation first.
    """
    text = transcript.lower()
    intents: List[Intent] = []

    page = _target_after(text, NAVIGATE_PHRASES)
    if page:
        intents.append(NavigateIntent(page))

    button = _target_after(text, ACTIVATE_PHRASES)
    if button:
        intents.append(ActivateIntent(button))

    return intents


def parse(transcript: str) -> Optional[Intent]:
    """Return the most recently computed intent of a transcript, if any."""
    intents = parse_intents(transcript)
    return intents[-1] if intents else None
