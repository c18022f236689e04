"""Expression label → canonical emotion lookup."""

from storyline.models import Emotion

_EMOTION_MAP: dict[str, Emotion] = {
    "very happy": "very happy",
    "deeply in love": "deeply in love",
    "surprised": "surprised",
    "thinking": "thinking",
    "confident": "confident",
    "concern": "concern",
    "annoyed": "annoyed",
    "blushing": "blushing",
    "crying": "crying",
    "disgusted": "disgusted",
    "fear": "fear",
    "neutral": "neutral",
    "happy": "happy",
    "sad": "sad",
    "angry": "angry",
    # aliases seen in hand-written content
    "concerned": "concern",
    "worried": "concern",
    "afraid": "fear",
    "scared": "fear",
    "blush": "blushing",
    "in love": "deeply in love",
    "shocked": "surprised",
    "thoughtful": "thinking",
}


def normalize_emotion(label: str | None) -> Emotion:
    """Map a free-text expression label to one of the canonical emotions.

    Case-insensitive; surrounding whitespace is ignored. Unknown or missing
    labels fall back to "neutral".
    """
    if not label:
        return "neutral"
    return _EMOTION_MAP.get(" ".join(label.lower().split()), "neutral")
