"""
Pipeline stages.

Each stage takes a plain payload (the StageAttempt payload) and returns a
JSON-serialisable result dict. Stages are run by the Celery tasks in
``tasks.py`` or inline from the API through ``jobs.run_inline``.
"""

import json
import logging
import re

from src.analysis import get_analyzer, select_genres
from src.generation import TextServiceError, get_text_service, strip_code_fences, strip_wrapping_quotes
from src.generation import prompts
from src.observability import trace_stage

from . import vocabulary
from .exceptions import (
    DispatchError,
    InvalidTransition,
    MalformedStageOutput,
    MissingStageInputs,
    StageError,
    WorkNotFound,
)
from .jobs import Stage, dispatch
from .lifecycle import transition
from .models import CATEGORIZATION_FIELDS, Work
from .notifications import notify_work_status

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Quick Capture"
MAX_TITLE_LENGTH = 200
SUGGESTION_COUNT = 3

PLATFORM_NAMES = [
    "spotify",
    "distrokid",
    "apple music",
    "itunes",
    "youtube",
    "soundcloud",
    "bandcamp",
    "instagram",
    "facebook",
    "tiktok",
    "twitter",
]
_URL = re.compile(r"https?://|www\.|\b[a-z0-9-]+\.(com|net|org|io|fm)\b", re.IGNORECASE)
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def _get_work(work_id) -> Work:
    work = Work.get_or_none(work_id)
    if work is None:
        raise WorkNotFound(f"Work {work_id} not found")
    return work


def _clean_title(text: str) -> str:
    lines = [line for line in text.splitlines() if line.strip()]
    title = strip_wrapping_quotes(lines[0]) if lines else ""
    if not title or len(title) > MAX_TITLE_LENGTH:
        raise TextServiceError("Model returned an unusable title", kind="malformed")
    return title


def needs_generated_name(name: str | None) -> bool:
    """True when the current name is empty or the capture default."""
    return not name or DEFAULT_NAME in name


def artwork_payload(work: Work) -> dict:
    """Artwork stage input built from the current work fields."""
    return {
        "work_id": str(work.id),
        "generated_name": work.generated_name,
        "primary_genre": work.primary_genre,
        "secondary_genre": work.secondary_genre,
        "mood": work.mood,
    }


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def _mark_analysis_failed(work_id, message: str):
    work = Work.get_or_none(work_id)
    if work is None or work.status != Work.Status.ANALYZING:
        logger.warning(f"Not marking work {work_id} failed; status is no longer analyzing")
        return
    transition(work, Work.Status.FAILED, message)
    notify_work_status(work.id, Work.Status.FAILED, message)


def run_analysis(
    work_id,
    storage_ref: str,
    is_improvisation_hint: bool = False,
    analyzer=None,
    text_service=None,
    rng=None,
) -> dict:
    """
    Analyse the attached audio, name the work and mark it completed.

    The result is discarded if the work was reset while the stage ran. Any
    unexpected error moves the work to failed and is re-raised as StageError.

    Returns:
        {"success": bool, "generated_name": str | None}
    """
    work = _get_work(work_id)
    if work.status == Work.Status.UPLOADED:
        logger.info(f"Work {work_id} was reset before analysis ran; skipping")
        return {"success": False, "generated_name": None, "discarded": True}

    logger.info(f"Starting analysis for work {work_id}")
    with trace_stage("analysis", str(work_id), {"storage_ref": storage_ref}) as span:
        try:
            analyzer = analyzer or get_analyzer()
            features = analyzer.analyse(storage_ref, is_improvisation_hint)
            primary, secondary = select_genres(
                features.is_piano, features.mood, features.tempo, rng=rng
            )

            service = text_service or get_text_service()
            try:
                title = _clean_title(
                    service.complete(
                        prompts.analysis_title_prompt(
                            work.file_name,
                            features.is_piano,
                            features.key,
                            features.tempo,
                            features.mood,
                            primary,
                            secondary,
                        ),
                        temperature=0.9,
                        purpose="analysis_title",
                    )
                )
            except TextServiceError as e:
                logger.warning(f"Title generation failed for work {work_id}: {e.label}")
                span.fallback(e)
                title = f"AI Name Generation Failed ({e.label})"

            work.refresh_from_db()
            if work.status == Work.Status.UPLOADED or work.storage_path != storage_ref:
                logger.info(f"Work {work_id} was reset during analysis; discarding result")
                span.discarded("audio was cleared or replaced")
                return {"success": False, "generated_name": None, "discarded": True}

            fields = {
                "analysis_data": features.as_analysis_data(),
                "is_piano": features.is_piano,
                "primary_genre": primary,
                "secondary_genre": secondary,
            }
            if needs_generated_name(work.generated_name):
                fields["generated_name"] = title
            transition(work, Work.Status.COMPLETED, "Analysis complete", **fields)
        except InvalidTransition as e:
            logger.warning(f"Discarding analysis for work {work_id}: {e}")
            span.discarded(str(e))
            return {"success": False, "generated_name": None, "discarded": True}
        except Exception as e:
            logger.exception(f"Error analysing work {work_id}: {e}")
            _mark_analysis_failed(work_id, str(e))
            raise StageError(f"Analysis failed: {e}") from e

        span.completed(generated_name=work.generated_name)

    notify_work_status(work.id, Work.Status.COMPLETED, "Analysis complete")
    logger.info(f"Analysis complete for work {work_id}: {work.generated_name}")

    try:
        dispatch(Stage.ARTWORK, work, artwork_payload(work))
    except DispatchError as e:
        logger.warning(f"Artwork stage not queued for work {work_id}: {e}")

    return {"success": True, "generated_name": work.generated_name}


# ---------------------------------------------------------------------------
# Artwork
# ---------------------------------------------------------------------------


def _artwork_stale_reason(work: Work, generated_name, primary_genre, mood) -> str | None:
    """Why an artwork prompt built from these inputs no longer fits the work, if it doesn't."""
    if work.status == Work.Status.UPLOADED or not work.has_audio:
        return "audio was cleared"
    if (work.generated_name, work.primary_genre, work.mood) != (generated_name, primary_genre, mood):
        return "name, genre or mood changed"
    return None


def run_artwork(
    work_id,
    generated_name: str | None = None,
    primary_genre: str | None = None,
    secondary_genre: str | None = None,
    mood: str | None = None,
    text_service=None,
) -> dict:
    """
    Generate an image-generator prompt for the cover art.

    Only ``artwork_prompt`` is written; an uploaded ``artwork_url`` is kept.
    The prompt is discarded if the audio was cleared, or the name, primary
    genre or mood changed, before it could be written.

    Raises:
        MissingStageInputs: If name, primary genre or mood is missing
    """
    missing = [
        label
        for label, value in (
            ("generated_name", generated_name),
            ("primary_genre", primary_genre),
            ("mood", mood),
        )
        if not value
    ]
    if missing:
        raise MissingStageInputs(f"Missing required inputs for artwork: {', '.join(missing)}")

    work = _get_work(work_id)
    service = text_service or get_text_service()

    with trace_stage("artwork", work_id, {"generated_name": generated_name}) as span:
        reason = _artwork_stale_reason(work, generated_name, primary_genre, mood)
        if reason is None:
            try:
                prompt = strip_wrapping_quotes(
                    service.complete(
                        prompts.artwork_prompt_request(
                            generated_name, primary_genre, secondary_genre, mood
                        ),
                        temperature=0.8,
                        purpose="artwork",
                    )
                )
            except TextServiceError as e:
                logger.warning(f"Artwork prompt fallback for work {work_id}: {e.label}")
                span.fallback(e)
                prompt = prompts.fallback_artwork_prompt(generated_name, primary_genre)

            work.refresh_from_db()
            reason = _artwork_stale_reason(work, generated_name, primary_genre, mood)

        if reason is not None:
            logger.info(f"Discarding artwork prompt for work {work_id}: {reason}")
            span.discarded(reason)
            return {"success": False, "artwork_prompt": None, "discarded": True}

        work.artwork_prompt = prompt
        work.save(update_fields=["artwork_prompt"])
        span.completed(artwork_prompt=prompt)

    logger.info(f"Artwork prompt saved for work {work_id}")
    return {"success": True, "artwork_prompt": prompt}


# ---------------------------------------------------------------------------
# Distribution augmentation
# ---------------------------------------------------------------------------


def parse_categorization(text: str) -> dict:
    """
    Parse and normalise the categorization JSON returned by the model.

    Raises:
        MalformedStageOutput: On invalid JSON, a non-object, no recognised
            benefits or a practice outside the vocabulary
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise MalformedStageOutput(f"Categorization is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedStageOutput("Categorization must be a JSON object")

    benefits = vocabulary.pick_members(
        data.get("benefits"), vocabulary.ALL_BENEFITS, vocabulary.MAX_BENEFITS
    )
    if not benefits:
        raise MalformedStageOutput("Categorization has no recognised benefits")

    practice = data.get("practice")
    if isinstance(practice, list):
        practice = practice[0] if practice else None
    practice = vocabulary.canonical_member(practice, vocabulary.ALL_PRACTICES)
    if practice is None:
        raise MalformedStageOutput("Categorization practice is not a recognised practice")

    return {
        "content_type": vocabulary.canonical_member(data.get("content_type"), vocabulary.CONTENT_TYPES),
        "language": vocabulary.canonical_member(data.get("language"), vocabulary.LANGUAGES),
        "primary_use": vocabulary.canonical_member(data.get("primary_use"), vocabulary.PRIMARY_USES),
        "audience_level": vocabulary.canonical_member(
            data.get("audience_level"), vocabulary.AUDIENCE_LEVELS
        ),
        "audience_ages": vocabulary.pick_members(
            data.get("audience_ages"), vocabulary.AUDIENCE_AGES, len(vocabulary.AUDIENCE_AGES)
        ),
        "voice": vocabulary.canonical_member(data.get("voice"), vocabulary.VOICES),
        "benefits": benefits,
        "practice": practice,
        "themes": vocabulary.pick_members(
            data.get("themes"), vocabulary.ALL_THEMES, vocabulary.MAX_THEMES
        ),
    }


def check_description_compliance(text: str) -> list[str]:
    """
    List the ways a description breaks the platform rules.

    Rules: 3 to 5 sentences, no links, no mentions of other platforms.
    """
    issues = []
    sentences = [s for s in _SENTENCE_END.split(text.strip()) if s.strip()]
    if not 3 <= len(sentences) <= 5:
        issues.append(f"Expected 3-5 sentences, found {len(sentences)}")
    if _URL.search(text):
        issues.append("Contains a link")
    lowered = text.lower()
    for name in PLATFORM_NAMES:
        if name in lowered:
            issues.append(f"Mentions {name}")
    return issues


def _current_categorization(work: Work) -> dict:
    return {name: getattr(work, name) for name in CATEGORIZATION_FIELDS if name != "description"}


def run_augmentation(work_id, text_service=None) -> dict:
    """
    Populate the distribution categorization and description.

    Both generative calls must succeed before anything is written; the
    work is then updated in a single write.

    Raises:
        TextServiceError: If either call fails
        MalformedStageOutput: If the categorization cannot be used
    """
    work = _get_work(work_id)
    service = text_service or get_text_service()

    with trace_stage("augmentation", str(work_id)) as span:
        raw = service.complete(
            prompts.categorization_prompt(work), temperature=0.4, purpose="categorization"
        )
        updates = parse_categorization(raw)

        description = service.complete(
            prompts.description_prompt(work, updates), temperature=0.7, purpose="description"
        )
        issues = check_description_compliance(description)
        if issues:
            logger.warning(f"Description for work {work_id} has compliance issues: {issues}")

        for name, value in updates.items():
            setattr(work, name, value)
        work.description = description
        work.save(update_fields=[*updates, "description"])
        span.completed(updates=updates, compliance_issues=issues)

    logger.info(f"Distribution metadata saved for work {work_id}")
    return {
        "success": True,
        "description": description,
        "updates": updates,
        "compliance_issues": issues,
    }


def run_description(work_id, text_service=None) -> dict:
    """Generate a description from the current categorization without saving it."""
    work = _get_work(work_id)
    service = text_service or get_text_service()

    with trace_stage("description", str(work_id)) as span:
        try:
            description = service.complete(
                prompts.description_prompt(work, _current_categorization(work)),
                temperature=0.7,
                purpose="description",
            )
        except TextServiceError as e:
            logger.warning(f"Description fallback for work {work_id}: {e.label}")
            span.fallback(e)
            return {
                "success": False,
                "description": f"AI Description Generation Failed ({e.label})",
            }
        issues = check_description_compliance(description)
        span.completed(compliance_issues=issues)

    return {"success": True, "description": description, "compliance_issues": issues}


def run_title(work_id, mode: str = "ai", text_service=None, rng=None) -> dict:
    """Suggest a title without saving it, either from the model or at random."""
    work = _get_work(work_id)
    if mode == "random":
        return {"success": True, "title": vocabulary.random_title(rng)}

    service = text_service or get_text_service()
    with trace_stage("title", str(work_id)) as span:
        try:
            title = _clean_title(
                service.complete(prompts.work_title_prompt(work), temperature=0.9, purpose="title")
            )
        except TextServiceError as e:
            logger.warning(f"Title fallback for work {work_id}: {e.label}")
            span.fallback(e)
            return {"success": False, "title": f"AI Title Generation Failed ({e.label})"}
        span.completed(title=title)

    return {"success": True, "title": title}


# ---------------------------------------------------------------------------
# Creative coaching
# ---------------------------------------------------------------------------


def parse_suggestions(text: str) -> list[str]:
    """
    Parse the model's JSON array of suggestions.

    Raises:
        TextServiceError: Unless the response is an array of exactly
            SUGGESTION_COUNT non-empty strings
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise TextServiceError(f"Suggestions are not valid JSON: {e}", kind="malformed") from e

    if not isinstance(data, list) or len(data) != SUGGESTION_COUNT:
        raise TextServiceError(
            f"Expected a list of {SUGGESTION_COUNT} suggestions", kind="malformed"
        )
    suggestions = [item.strip() for item in data if isinstance(item, str) and item.strip()]
    if len(suggestions) != SUGGESTION_COUNT:
        raise TextServiceError("Suggestions must be non-empty strings", kind="malformed")
    return suggestions


def run_suggestions(work_id, text_service=None) -> dict:
    """Suggest three ways to develop the piece further, without saving them."""
    work = _get_work(work_id)
    service = text_service or get_text_service()

    with trace_stage("suggestions", str(work_id)) as span:
        try:
            suggestions = parse_suggestions(
                service.complete(
                    prompts.creative_suggestions_prompt(work),
                    temperature=0.9,
                    purpose="suggestions",
                )
            )
        except TextServiceError as e:
            logger.warning(f"Suggestions fallback for work {work_id}: {e.label}")
            span.fallback(e)
            return {"success": False, "suggestions": [f"AI Suggestions Failed ({e.label})"]}
        span.completed(suggestions=suggestions)

    return {"success": True, "suggestions": suggestions}


def daily_prompt(text_service=None) -> dict:
    """An improvisation prompt for the day. Not tied to any work."""
    service = text_service or get_text_service()
    try:
        prompt = strip_wrapping_quotes(
            service.complete(prompts.daily_prompt_request(), temperature=1.0, purpose="daily_prompt")
        )
    except TextServiceError as e:
        logger.warning(f"Daily prompt fallback: {e.label}")
        return {"success": False, "prompt": f"AI Prompt Failed ({e.label})"}
    return {"success": True, "prompt": prompt}


STAGE_RUNNERS = {
    Stage.ANALYSIS: run_analysis,
    Stage.ARTWORK: run_artwork,
    Stage.AUGMENTATION: run_augmentation,
    Stage.DESCRIPTION: run_description,
    Stage.TITLE: run_title,
    Stage.SUGGESTIONS: run_suggestions,
}
