"""
Readiness engine.

Turns a work snapshot into one progress percentage, a message and at most
one next action. Pure: reads only the fields of the work passed in.

Rungs, each with the percentage shown once it is satisfied:

    10   work exists
    15   work type chosen
    30   audio attached
    60   audio + core metadata (primary genre, key, tempo, mood)
    70   + creative notes + artwork prompt
    80   + benefits and practice
    90   augmentation complete, awaiting manual release
    100  marked ready for release

Progress is the highest satisfied rung, so it never drops as more rungs pass.
"""

from pydantic import BaseModel


class NextAction(BaseModel):
    label: str
    view: str = "details"


class Readiness(BaseModel):
    progress_percent: int
    message: str
    next_action: NextAction | None = None


def _core(work) -> bool:
    return work.has_audio and work.has_core_metadata


def _creative(work) -> bool:
    return _core(work) and work.has_notes and bool(work.artwork_prompt)


def _augmented(work) -> bool:
    return _creative(work) and work.has_categorization


RUNGS = [
    (10, lambda work: True),
    (15, lambda work: work.is_improvisation is not None),
    (30, lambda work: work.has_audio),
    (60, _core),
    (70, _creative),
    (80, _augmented),
    (90, _augmented),
    (100, lambda work: work.is_ready_for_release),
]

MESSAGES = {
    10: "Idea captured. Choose whether this is an improvisation or a composition.",
    15: "Upload the audio to start analysis.",
    30: "Audio uploaded. Core metadata is still missing.",
    60: "Core metadata complete. Add creative notes and generate an artwork prompt.",
    70: "Creative work done. Populate the distribution metadata.",
    80: "Distribution metadata populated.",
    90: "Distribution metadata complete. Mark the work as ready for release.",
    100: "Ready for release!",
}

DISTRIBUTION_ACTION = NextAction(label="Open Distribution Prep", view="distribution")


def progress_percent(work) -> int:
    return max(percent for percent, satisfied in RUNGS if satisfied(work))


def next_action(work) -> NextAction | None:
    """The call to action of the first unmet rung, if any."""
    if work.is_analyzing:
        return None
    if work.is_ready_for_release:
        return DISTRIBUTION_ACTION
    if work.is_improvisation is None:
        return NextAction(label="Choose Work Type")
    if not work.has_audio:
        return NextAction(label="Upload Audio")
    if not work.has_core_metadata:
        return NextAction(label="Complete Core Metadata")
    if not work.has_notes:
        return NextAction(label="Add Creative Notes")
    if not work.artwork_prompt:
        return NextAction(label="Generate AI Artwork Prompt")
    if not work.has_categorization:
        return NextAction(label="AI Populate Distribution Metadata")
    return NextAction(label="Mark as Ready for Release")


def evaluate_readiness(work) -> Readiness:
    percent = progress_percent(work)
    if work.is_analyzing:
        message = "AI analysis in progress..."
    elif work.status == work.Status.FAILED:
        message = f"Analysis failed: {work.status_message or 'unknown error'}. Clear the audio to try again."
    else:
        message = MESSAGES[percent]
    return Readiness(progress_percent=percent, message=message, next_action=next_action(work))
