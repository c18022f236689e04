"""Plain-text rendering of parsed segments (transcripts, terminal play)."""

from storyline.models import NARRATOR, Segment


def segments_to_text(segments: list[Segment]) -> str:
    """Convert segments to one line each.

    Narration is written bare; character lines as "Name(emotion): text".
    """
    parts: list[str] = []
    for seg in segments:
        if seg.speaker == NARRATOR:
            parts.append(seg.text)
        else:
            parts.append(f"{seg.speaker.title()}({seg.emotion}): {seg.text}")
    return "\n".join(parts)
