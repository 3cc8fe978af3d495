"""Tests for the readiness engine."""

from src.works.fields import default_notes
from src.works.models import Work
from src.works.preflight import evaluate_preflight
from src.works.readiness import evaluate_readiness, next_action, progress_percent


def make_work(**fields):
    defaults = {"is_improvisation": None, "status": Work.Status.UPLOADED}
    defaults.update(fields)
    return Work(**defaults)


def with_notes(text="A-B-A form"):
    notes = default_notes()
    notes[0]["content"] = text
    return notes


CORE = {
    "storage_path": "1/1700000000000.wav",
    "status": Work.Status.COMPLETED,
    "primary_genre": "New Age",
    "analysis_data": {"key": "C Major", "tempo": 72, "mood": "Calm"},
}


class TestProgress:

    def test_new_work_is_ten_percent(self):
        work = make_work()
        assert progress_percent(work) == 10
        assert next_action(work).label == "Choose Work Type"

    def test_type_chosen(self):
        work = make_work(is_improvisation=False)
        assert progress_percent(work) == 15
        assert next_action(work).label == "Upload Audio"

    def test_audio_supersedes_type(self):
        work = make_work(storage_path="1/1.wav")
        assert progress_percent(work) == 30

    def test_core_metadata_requires_all_analysis_fields(self):
        work = make_work(
            is_improvisation=True,
            **{**CORE, "analysis_data": {"key": "C Major", "tempo": 72}},
        )
        assert progress_percent(work) == 30
        assert next_action(work).label == "Complete Core Metadata"

    def test_core_metadata(self):
        work = make_work(is_improvisation=True, **CORE)
        assert progress_percent(work) == 60
        assert next_action(work).label == "Add Creative Notes"

    def test_notes_without_prompt_stay_at_sixty(self):
        work = make_work(is_improvisation=True, notes=with_notes(), **CORE)
        assert progress_percent(work) == 60
        assert next_action(work).label == "Generate AI Artwork Prompt"

    def test_whitespace_notes_do_not_count(self):
        work = make_work(
            is_improvisation=True, notes=with_notes("   "), artwork_prompt="Soft light", **CORE
        )
        assert progress_percent(work) == 60
        assert next_action(work).label == "Add Creative Notes"

    def test_creative_rung(self):
        work = make_work(
            is_improvisation=True, notes=with_notes(), artwork_prompt="Soft light", **CORE
        )
        assert progress_percent(work) == 70
        assert next_action(work).label == "AI Populate Distribution Metadata"

    def test_augmented_rung_reports_ninety(self):
        work = make_work(
            is_improvisation=True,
            notes=with_notes(),
            artwork_prompt="Soft light",
            benefits=["Relax"],
            practice="Sound Meditation",
            **CORE,
        )
        assert progress_percent(work) == 90
        assert next_action(work).label == "Mark as Ready for Release"

    def test_benefits_without_practice_is_not_augmented(self):
        work = make_work(
            is_improvisation=True,
            notes=with_notes(),
            artwork_prompt="Soft light",
            benefits=["Relax"],
            **CORE,
        )
        assert progress_percent(work) == 70

    def test_ready_for_release_is_full(self):
        work = make_work(is_ready_for_release=True)
        assert progress_percent(work) == 100
        action = next_action(work)
        assert action.view == "distribution"


class TestNextAction:

    def test_no_action_while_analyzing(self):
        work = make_work(is_improvisation=True, storage_path="1/1.wav", status=Work.Status.ANALYZING)
        readiness = evaluate_readiness(work)
        assert readiness.next_action is None
        assert readiness.progress_percent == 30
        assert "analysis" in readiness.message.lower()

    def test_failed_message_includes_reason(self):
        work = make_work(
            is_improvisation=True,
            storage_path="1/1.wav",
            status=Work.Status.FAILED,
            status_message="Analysis timed out",
        )
        readiness = evaluate_readiness(work)
        assert "Analysis timed out" in readiness.message
        assert readiness.next_action.label == "Complete Core Metadata"


def test_capture_to_release_scenario():
    """Progress climbs 15 -> 30 -> 60 -> 70 -> 90 -> 100 while the gate stays blocked."""
    work = make_work(is_improvisation=True)
    seen = [progress_percent(work)]

    work.storage_path = "1/1700000000000.wav"
    work.status = Work.Status.ANALYZING
    seen.append(progress_percent(work))

    work.status = Work.Status.COMPLETED
    work.primary_genre = "New Age"
    work.secondary_genre = "Classical"
    work.analysis_data = {"key": "C Major", "tempo": 72, "mood": "Calm"}
    seen.append(progress_percent(work))

    work.notes = with_notes()
    work.artwork_prompt = "Soft morning light over still water"
    seen.append(progress_percent(work))

    work.benefits = ["Relax", "Focus"]
    work.practice = "Sound Meditation"
    seen.append(progress_percent(work))
    gate = evaluate_preflight(work)
    assert gate.blocked
    assert not gate.ready

    work.is_ready_for_release = True
    seen.append(progress_percent(work))

    assert seen == [15, 30, 60, 70, 90, 100]
    assert seen == sorted(seen)
    assert evaluate_preflight(work).blocked
