from storyline.narrative import render_hub
from storyline.narrative.hub import COMPLETED_SUFFIX, hub_entries
from storyline.parser import StoryParser


def _parse(fragment: str):
    parser = StoryParser(fallback_tail_limit=None)
    segments = parser.process_chunk(fragment)
    return segments, parser.get_choices()


def test_fresh_hub():
    segments, choices = _parse(render_hub())
    assert [s.text for s in segments] == ["Who do you sit with?"]
    assert [c.id for c in choices] == [
        "talk_lumine", "talk_zhongli", "talk_tartaglia", "talk_venti", "end_story",
    ]
    assert not any(c.disabled for c in choices)
    assert choices[-1].text == "End the conversation"


def test_completed_threads_disabled_in_place():
    _, choices = _parse(render_hub(["tartaglia", "lumine"]))
    assert [c.id for c in choices] == [
        "completed_lumine", "talk_zhongli", "completed_tartaglia", "talk_venti", "end_story",
    ]
    assert [c.disabled for c in choices] == [True, False, True, False, False]
    assert choices[0].text == "Talk to Lumine about journeying between worlds" + COMPLETED_SUFFIX


def test_labels_not_html_escaped():
    """Apostrophes in labels reach the markup unchanged."""
    fragment = render_hub()
    assert "Listen to Venti's stories about ancient seals" in fragment
    assert "&#x27;" not in fragment


def test_hub_entries_ignore_unknown_characters():
    entries = hub_entries(["nobody"])
    assert len(entries) == 4
    assert not any(e["disabled"] for e in entries)


def test_all_completed_still_offers_end():
    _, choices = _parse(render_hub(["lumine", "zhongli", "tartaglia", "venti"]))
    enabled = [c.id for c in choices if not c.disabled]
    assert enabled == ["end_story"]
