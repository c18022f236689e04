"""Tests for the pure choice router."""

import pytest

from storyline.models import STAGE_ORDER
from storyline.narrative import CHARACTERS, END, FRAGMENTS, render_hub, route
from storyline.narrative.fragments import get_fragment
from storyline.parser import StoryParser


def _choice_ids(fragment: str) -> list[str]:
    parser = StoryParser(fallback_tail_limit=None)
    parser.process_chunk(fragment)
    return [c.id for c in parser.get_choices()]


# ── Thread entry ───────────────────────────────────────────


def test_talk_opens_thread_at_l1():
    result = route("talk_venti")
    assert result.fragment == FRAGMENTS[("venti", "L1")]
    assert result.character_progress == {}
    assert result.completed_threads == []
    assert result.final is False


def test_talk_resumes_at_current_stage():
    """A thread already at L2 reopens at L2 and progress is unchanged."""
    result = route("talk_lumine", [], {"lumine": "L2"})
    assert result.fragment == FRAGMENTS[("lumine", "L2")]
    assert result.character_progress == {"lumine": "L2"}


def test_talk_at_close_reopens_closing_fragment():
    result = route("talk_zhongli", [], {"zhongli": "CLOSE"})
    assert result.fragment == FRAGMENTS[("zhongli", "CLOSE")]


def test_get_fragment_unset_is_l1():
    assert get_fragment("tartaglia", "UNSET") == FRAGMENTS[("tartaglia", "L1")]


# ── Stage options ──────────────────────────────────────────


def test_stage_one_moves_to_l2():
    result = route("tartaglia_l1_spar")
    assert result.fragment == FRAGMENTS[("tartaglia", "L2")]
    assert result.character_progress == {"tartaglia": "L2"}


def test_stage_two_moves_to_close():
    result = route("venti_l2_parse", [], {"venti": "L2"})
    assert result.fragment == FRAGMENTS[("venti", "CLOSE")]
    assert result.character_progress == {"venti": "CLOSE"}


def test_progress_never_regresses():
    """A stale stage-one option after CLOSE keeps the character at CLOSE."""
    result = route("lumine_l1_honest", [], {"lumine": "CLOSE"})
    assert result.character_progress == {"lumine": "CLOSE"}
    assert result.fragment == FRAGMENTS[("lumine", "L2")]


def test_other_characters_untouched():
    progress = {"zhongli": "L2", "venti": "CLOSE"}
    result = route("lumine_l1_joke", [], progress)
    assert result.character_progress == {"zhongli": "L2", "venti": "CLOSE", "lumine": "L2"}


# ── Hub ────────────────────────────────────────────────────


def test_return_to_hub_completes_thread():
    result = route("hub_return_after_zhongli", [], {"zhongli": "CLOSE"})
    assert result.completed_threads == ["zhongli"]
    assert result.fragment == render_hub(["zhongli"])
    ids = _choice_ids(result.fragment)
    assert ids == ["talk_lumine", "completed_zhongli", "talk_tartaglia", "talk_venti", "end_story"]


def test_return_to_hub_idempotent():
    result = route("hub_return_after_venti", ["venti"])
    assert result.completed_threads == ["venti"]


def test_choose_other_keeps_completed():
    result = route("hub_choose_other", ["lumine"], {"zhongli": "L2"})
    assert result.completed_threads == ["lumine"]
    assert result.character_progress == {"zhongli": "L2"}
    assert result.fragment == render_hub(["lumine"])


def test_unrecognized_goes_to_hub(caplog):
    result = route("approach_lumine", ["venti"])
    assert result.fragment == render_hub(["venti"])
    assert result.completed_threads == ["venti"]
    assert "approach_lumine" in caplog.text


def test_completed_entry_routes_to_hub():
    result = route("completed_lumine", ["lumine"])
    assert result.fragment == render_hub(["lumine"])


def test_empty_choice_goes_to_hub():
    assert route("").fragment == render_hub()


# ── End ────────────────────────────────────────────────────


def test_end_story_is_final():
    result = route("end_story", ["lumine"], {"lumine": "CLOSE"})
    assert result.fragment == END
    assert result.final is True
    assert result.completed_threads == ["lumine"]


# ── Properties ─────────────────────────────────────────────


def test_route_does_not_mutate_inputs():
    completed = ["lumine"]
    progress = {"zhongli": "L2"}
    route("zhongli_l2_seals", completed, progress)
    route("hub_return_after_zhongli", completed, progress)
    assert completed == ["lumine"]
    assert progress == {"zhongli": "L2"}


def test_route_is_deterministic():
    a = route("venti_l1_decode", ["lumine"], {"venti": "L1"})
    b = route("venti_l1_decode", ["lumine"], {"venti": "L1"})
    assert a == b


def test_duplicate_completed_entries_collapsed():
    result = route("hub_choose_other", ["venti", "venti", "lumine"])
    assert result.completed_threads == ["venti", "lumine"]


def test_invalid_stage_values_dropped():
    result = route("hub_choose_other", [], {"venti": "L9", "lumine": "L2"})
    assert result.character_progress == {"lumine": "L2"}


@pytest.mark.parametrize("choice_id", [
    "talk_lumine", "lumine_l1_x", "lumine_l2_x", "hub_return_after_lumine",
    "hub_choose_other", "end_story", "nonsense", "talk_", "_l1_", "TALK_LUMINE",
])
def test_every_id_yields_a_fragment(choice_id):
    result = route(choice_id, ["zhongli"], {"lumine": "L1"})
    assert result.fragment
    for stage in result.character_progress.values():
        assert stage in STAGE_ORDER


def test_every_offered_choice_routes():
    """Each choice id that appears in an authored fragment leads to a non-empty fragment."""
    fragments = list(FRAGMENTS.values()) + [render_hub(), render_hub(CHARACTERS)]
    for fragment in fragments:
        for choice_id in _choice_ids(fragment):
            assert route(choice_id).fragment


def test_full_thread_walkthrough():
    completed: list[str] = []
    progress: dict[str, str] = {}
    for choice_id in ("talk_lumine", "lumine_l1_honest", "lumine_l2_her_journey", "hub_return_after_lumine"):
        result = route(choice_id, completed, progress)
        completed, progress = result.completed_threads, dict(result.character_progress)
    assert progress == {"lumine": "CLOSE"}
    assert completed == ["lumine"]
    assert "completed_lumine" in _choice_ids(result.fragment)
