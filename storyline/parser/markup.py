"""Incremental story-markup parser.

Consumes fragment markup delivered in arbitrary chunks and emits Segments and
Choices as soon as each top-level construct is fully closed.

Top-level constructs (any mix is accepted):

  <Narrator>text</Narrator>
  <character name="X" emotion="E">text</character>
  <character name="X"><action expression="E">desc</action><say>line</say>...</character>
  <segment><speaker>X</speaker><emotion>E</emotion><text>line</text></segment>
  <choices><choice id="a" disabled="true">Label</choice>...</choices>

The scanner walks an explicit offset into the buffer. Only constructs whose
closing tag has arrived move the consumed offset; anything after it waits for
the next chunk. Unknown tags are stepped over while searching but are never
consumed on their own.
"""

import logging
import re

from storyline.models import NARRATOR, Choice, Segment

from .emotions import normalize_emotion

logger = logging.getLogger(__name__)

FALLBACK_TAIL_LIMIT = 50

DEFAULT_CHOICES: tuple[Choice, ...] = (
    Choice(id="approach_lumine", text="Approach Lumine and ask about her travels between worlds"),
    Choice(id="talk_zhongli", text="Sit with Zhongli and inquire about the contracts he mentioned"),
    Choice(id="challenge_tartaglia", text="Accept Tartaglia's challenge and show your fighting prowess"),
    Choice(id="listen_venti", text="Listen to Venti's music and share a story of your own"),
)

_TOP_LEVEL_RE = re.compile(r"<(narrator|character|segment|choices)(?=[\s>])", re.IGNORECASE)
_CLOSE_RE = {
    name: re.compile(rf"</{name}\s*>", re.IGNORECASE)
    for name in ("narrator", "character", "segment", "choices")
}
_ATTR_RE = re.compile(r"""([\w-]+)\s*=\s*(["'])(.*?)\2""", re.DOTALL)
_SUB_ELEMENT_RE = re.compile(r"<(action|say|dialogue)\b([^>]*)>(.*?)</\1\s*>", re.DOTALL | re.IGNORECASE)
_FIELD_RE = re.compile(r"<(speaker|emotion|text)\s*>(.*?)</\1\s*>", re.DOTALL | re.IGNORECASE)
_CHOICE_RE = re.compile(r"<choice\b([^>]*)>(.*?)</choice\s*>", re.DOTALL | re.IGNORECASE)
# One action + one line on a single line, as older content was written.
_COMPACT_RE = re.compile(
    r'<character\s+name="([^"]+)"\s*>[ \t]*'
    r'<action\s+expression="([^"]+)"\s*>([^<\n]*)</action>[ \t]*'
    r"<say>([^<\n]+)</say>[^<\n]*</character\s*>",
    re.IGNORECASE,
)


def _attributes(tag: str) -> dict[str, str]:
    return {m.group(1).lower(): m.group(3) for m in _ATTR_RE.finditer(tag)}


class StoryParser:
    """Stateful chunk-at-a-time decoder for one story session.

    Call reset() before reusing an instance for an unrelated session: the
    duplicate filter for character blocks spans the whole session.
    """

    def __init__(
        self,
        fallback_tail_limit: int | None = FALLBACK_TAIL_LIMIT,
        default_choices: list[Choice] | tuple[Choice, ...] = DEFAULT_CHOICES,
    ) -> None:
        self.fallback_tail_limit = fallback_tail_limit
        self._default_choices = tuple(default_choices)
        self.reset()

    def reset(self) -> None:
        """Clear all state back to a fresh parser."""
        self._buffer = ""
        self._consumed = 0
        self._segments: list[Segment] = []
        self._choices: dict[str, Choice] = {}
        self._seen: set[tuple[str, str, str]] = set()
        self._complete = False

    # ── Public API ───────────────────────────────────────────

    @property
    def buffer(self) -> str:
        """The unconsumed tail of the input."""
        return self._buffer[self._consumed:]

    def process_chunk(self, chunk: str) -> list[Segment]:
        """Append a chunk and return the segments it completed, in source order."""
        self._buffer += chunk
        new_segments: list[Segment] = []

        buf = self._buffer
        pos = self._consumed
        while True:
            opener = _TOP_LEVEL_RE.search(buf, pos)
            if opener is None:
                break
            tag_end = buf.find(">", opener.end())
            if tag_end == -1:
                break  # opening tag still arriving
            if "<" in buf[opener.end():tag_end]:
                logger.debug("Skipping broken opening tag at %d", opener.start())
                pos = opener.end()
                continue

            name = opener.group(1).lower()
            close = _CLOSE_RE[name].search(buf, tag_end + 1)
            following = _TOP_LEVEL_RE.search(buf, tag_end + 1)
            if following and (close is None or following.start() < close.start()):
                # Another block starts before this one closes: this one can never close cleanly.
                logger.debug("Skipping unterminated <%s> at %d", name, opener.start())
                pos = opener.end()
                continue
            if close is None:
                break  # wait for the closing tag

            open_tag = buf[opener.start():tag_end + 1]
            inner = buf[tag_end + 1:close.start()]
            block = buf[opener.start():close.end()]
            if name == "narrator":
                new_segments.extend(self._narrator(inner))
            elif name == "character":
                new_segments.extend(self._character(open_tag, inner, block))
            elif name == "segment":
                new_segments.extend(self._record(inner))
            else:
                self._choices_block(inner)

            pos = close.end()
            self._consumed = pos
            logger.debug("Consumed <%s> block, offset now %d", name, pos)

        self._maybe_fallback()

        # Drop the consumed prefix; the offset restarts at the new front.
        self._buffer = self._buffer[self._consumed:]
        self._consumed = 0
        return new_segments

    def get_segments(self) -> list[Segment]:
        return list(self._segments)

    def get_choices(self) -> list[Choice]:
        """Choices in discovery order."""
        return list(self._choices.values())

    def is_complete(self) -> bool:
        return self._complete

    # ── Construct handlers ───────────────────────────────────

    def _emit(self, segment: Segment, dedupe: bool = False) -> list[Segment]:
        if dedupe:
            key = (segment.speaker, segment.emotion, segment.text)
            if key in self._seen:
                return []
            self._seen.add(key)
        self._segments.append(segment)
        return [segment]

    def _narrator(self, inner: str) -> list[Segment]:
        text = inner.strip()
        if not text:
            return []
        return self._emit(Segment(speaker=NARRATOR, emotion="neutral", text=text))

    def _character(self, open_tag: str, inner: str, block: str) -> list[Segment]:
        attrs = _attributes(open_tag)
        speaker = attrs.get("name", "").strip().upper()
        if not speaker:
            logger.debug("Dropping <character> block without a name")
            return []

        compact = _COMPACT_RE.fullmatch(block.strip())
        if compact:
            emotion = normalize_emotion(compact.group(2))
            out: list[Segment] = []
            action = compact.group(3).strip()
            if action:
                out.extend(self._emit(
                    Segment(speaker=speaker, emotion=emotion, text=f"({action})"), dedupe=True,
                ))
            line = compact.group(4).strip()
            if line:
                out.extend(self._emit(Segment(speaker=speaker, emotion=emotion, text=line), dedupe=True))
            return out

        declared = attrs.get("emotion", attrs.get("expression"))
        parts = list(_SUB_ELEMENT_RE.finditer(inner))
        if not parts:
            text = inner.strip()
            if not text:
                return []
            return self._emit(Segment(speaker=speaker, emotion=normalize_emotion(declared), text=text))

        emotion = normalize_emotion(declared)
        out = []
        for part in parts:
            kind = part.group(1).lower()
            text = part.group(3).strip()
            if kind == "action":
                sub_attrs = _attributes(part.group(2))
                emotion = normalize_emotion(sub_attrs.get("expression", sub_attrs.get("emotion")))
                if text:
                    out.extend(self._emit(
                        Segment(speaker=speaker, emotion=emotion, text=f"({text})"), dedupe=True,
                    ))
            elif text:
                out.extend(self._emit(Segment(speaker=speaker, emotion=emotion, text=text), dedupe=True))
        return out

    def _record(self, inner: str) -> list[Segment]:
        fields: dict[str, str] = {}
        for m in _FIELD_RE.finditer(inner):
            fields.setdefault(m.group(1).lower(), m.group(2).strip())
        text = fields.get("text", "")
        if not text:
            return []
        speaker = fields.get("speaker", "").upper() or NARRATOR
        return self._emit(Segment(speaker=speaker, emotion=normalize_emotion(fields.get("emotion")), text=text))

    def _choices_block(self, inner: str) -> None:
        for m in _CHOICE_RE.finditer(inner):
            attrs = _attributes(m.group(1))
            choice_id = attrs.get("id", "").strip()
            if not choice_id or choice_id in self._choices:
                continue
            self._choices[choice_id] = Choice(
                id=choice_id,
                text=m.group(2).strip(),
                disabled=attrs.get("disabled", "").strip().lower() == "true",
            )
        if self._choices:
            self._complete = True

    def _maybe_fallback(self) -> None:
        """Offer the default choices for legacy content that ends without a <choices> block."""
        if self.fallback_tail_limit is None or self._choices or not self._segments:
            return
        tail = self._buffer[self._consumed:]
        unclosed = ("<" in tail and ">" not in tail) or tail.count("<") > tail.count(">")
        pending = _TOP_LEVEL_RE.search(tail) is not None
        if unclosed or pending or len(tail.strip()) >= self.fallback_tail_limit:
            return
        logger.debug("No <choices> block seen; using %d default choices", len(self._default_choices))
        for choice in self._default_choices:
            self._choices.setdefault(choice.id, choice)
        self._complete = True
