"""Incremental story-markup parsing.

A StoryParser is fed fragment text chunk by chunk (as it arrives from a
stream) and returns the Segments each chunk completed. Once a closed
<choices> block has produced at least one Choice the parser reports
is_complete(); legacy fragments without a <choices> block get a fixed set of
default choices when the buffer looks drained (see FALLBACK_TAIL_LIMIT).

Segment text is taken verbatim after trimming; action descriptions are
wrapped in parentheses. Expression labels pass through normalize_emotion().
"""

from .emotions import normalize_emotion  # noqa: F401
from .markup import (  # noqa: F401
    DEFAULT_CHOICES,
    FALLBACK_TAIL_LIMIT,
    StoryParser,
)
from .segments import segments_to_text  # noqa: F401
