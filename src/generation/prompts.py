"""Prompt templates for the pipeline stages."""

from src.works import vocabulary


def _notes_text(notes) -> str:
    parts = [
        f"{n.get('title', '')}: {n.get('content', '').strip()}"
        for n in notes or []
        if isinstance(n, dict) and (n.get("content") or "").strip()
    ]
    return "; ".join(parts) or "No creative notes provided."


def _tags_text(tags) -> str:
    return ", ".join(tags or []) or "No user tags."


def analysis_title_prompt(
    file_name: str,
    is_piano: bool,
    key: str,
    tempo: int,
    mood: str,
    primary_genre: str,
    secondary_genre: str,
) -> str:
    """Title request built from the freshly derived analysis fields."""
    instrumentation = "solo piano" if is_piano else "mixed instrumentation"
    return f"""You are an expert music poet. Generate a single, evocative, and unique title for a new piece of music.

Analysis:
- Source file: "{file_name or 'untitled recording'}"
- Instrumentation: {instrumentation}
- Key: {key}
- Tempo: {tempo} BPM
- Mood: {mood}
- Primary Genre: {primary_genre}
- Secondary Genre: {secondary_genre}

The title should be suitable for a music release, focusing on imagery, emotion, or abstract concepts.

Respond ONLY with the title, nothing else."""


def work_title_prompt(work) -> str:
    """Manual title request built from the full work state."""
    analysis = work.analysis_data or {}
    return f"""You are an expert music analyst and poet. Based on the following analysis and creative notes, generate a single, evocative, abstract, and unique title for this music piece.

Composition Data:
- Primary Genre: {work.primary_genre or 'Unknown'}
- Secondary Genre: {work.secondary_genre or 'Unknown'}
- Mood: {analysis.get('mood') or 'Neutral'}
- Tempo: {analysis.get('tempo') or 'Moderate'} BPM
- Creative Notes: {_notes_text(work.notes)}
- User Tags: {_tags_text(work.user_tags)}

The title should be suitable for a music release, focusing on imagery, emotion, or abstract concepts.

Respond ONLY with the title, nothing else."""


def artwork_prompt_request(
    generated_name: str,
    primary_genre: str,
    secondary_genre: str | None,
    mood: str,
) -> str:
    """Request for an image-generator prompt describing the cover art."""
    genres = primary_genre if not secondary_genre else f"{primary_genre} and {secondary_genre}"
    return f"""You are an expert visual artist designing album covers. The song title is "{generated_name}". The genre is {genres} and the mood is {mood}. Generate a single, highly descriptive, abstract, and evocative prompt suitable for an AI image generator (like Midjourney or DALL-E). The image must be square, high-resolution (3000x3000), and contain no text, logos, or human faces. Focus on color, texture, and lighting that reflects the {mood} mood and the {primary_genre} genre. The style should be cinematic, painterly, or digital art.

Respond ONLY with the prompt text, nothing else."""


def fallback_artwork_prompt(generated_name: str, primary_genre: str) -> str:
    return (
        f"A cinematic, abstract representation of {generated_name} "
        f"in the style of {primary_genre}. 3000x3000, no text."
    )


def categorization_prompt(work) -> str:
    """Request for the distribution categorization as a JSON object."""
    analysis = work.analysis_data or {}
    benefits = ", ".join(vocabulary.ALL_BENEFITS)
    practices = ", ".join(vocabulary.ALL_PRACTICES)
    themes = ", ".join(vocabulary.ALL_THEMES)
    return f"""You are an expert in wellness and meditation content categorization for platforms like Insight Timer. Based on the data for this music track, select the best fit for each metadata field.

Track Data:
- Title: "{work.generated_name or 'Untitled'}"
- Primary Genre: {work.primary_genre or 'Ambient'}
- Secondary Genre: {work.secondary_genre or 'None'}
- Mood: {analysis.get('mood') or 'Calm'}
- Tempo: {analysis.get('tempo') or 'Moderate'} BPM
- Instrumental: {'yes' if work.is_instrumental else 'unknown'}
- Creative Notes: {_notes_text(work.notes)}
- User Tags: {_tags_text(work.user_tags)}

Instructions:
1. content_type: select one from: {', '.join(vocabulary.CONTENT_TYPES)}.
2. language: select one from: {', '.join(vocabulary.LANGUAGES)}. Default to "English" if unsure.
3. primary_use: select one from: {', '.join(vocabulary.PRIMARY_USES)}.
4. audience_level: select one from: {', '.join(vocabulary.AUDIENCE_LEVELS)}.
5. audience_ages: select any from: {', '.join(vocabulary.AUDIENCE_AGES)}.
6. voice: select one from: {', '.join(vocabulary.VOICES)}. If the track is instrumental, select "None (Instrumental)".
7. benefits: select 1 to {vocabulary.MAX_BENEFITS} from: {benefits}.
8. practice: select exactly 1 from: {practices}.
9. themes: select up to {vocabulary.MAX_THEMES} from: {themes}.

Respond ONLY with a single JSON object with the keys "content_type", "language", "primary_use", "audience_level", "audience_ages" (array), "voice", "benefits" (array), "practice" (string) and "themes" (array)."""


def description_prompt(work, categorization: dict) -> str:
    """Request for a 3-5 sentence platform-compliant description."""
    analysis = work.analysis_data or {}
    return f"""You are an expert copywriter for wellness and meditation platforms like Insight Timer. Write a compelling, compliant description for a music track.

Compliance Rules:
1. The description must be 3 to 5 sentences long.
2. DO NOT include any promotional content, links, or mentions of other websites/platforms (e.g., Spotify, DistroKid, social media).
3. Focus on the mood, feeling, and intended use (meditation, relaxation, focus).

Track Data:
- Title: "{work.generated_name or 'Untitled'}"
- Primary Genre: {work.primary_genre or 'Ambient'}
- Mood: {analysis.get('mood') or 'Calm'}
- Tempo: {analysis.get('tempo') or 'Moderate'} BPM

Categorization:
- Content Type: {categorization.get('content_type') or 'Music'}
- Primary Use: {categorization.get('primary_use') or 'Relaxation'}
- Audience Level: {categorization.get('audience_level') or 'Everyone'}
- Benefits: {', '.join(categorization.get('benefits') or []) or 'General wellness'}
- Practice: {categorization.get('practice') or 'Sound Meditation'}
- Themes: {', '.join(categorization.get('themes') or []) or 'Secular Mindfulness'}
- Voice: {categorization.get('voice') or 'None (Instrumental)'}

Creative Input:
- User Notes (Creative Intent): {_notes_text(work.notes)}
- User Tags: {_tags_text(work.user_tags)}

Generate ONLY the description text, formatted as a single paragraph."""


def creative_suggestions_prompt(work) -> str:
    """Request for three ways to develop the piece, as a JSON array."""
    analysis = work.analysis_data or {}
    return f"""You are an expert music producer and creative coach. Based on the following composition data, generate exactly three distinct, actionable, and inspiring suggestions for the user to develop this musical idea further. Focus on structure, instrumentation, mood, or arrangement.

Composition Data:
- Title: "{work.generated_name or 'Untitled'}"
- Primary Genre: {work.primary_genre or 'Ambient'}
- Mood: {analysis.get('mood') or 'Calm'}
- Tempo: {analysis.get('tempo') or 'Moderate'} BPM
- Creative Notes: {_notes_text(work.notes)}
- User Tags: {_tags_text(work.user_tags)}

Instructions for Output:
1. Provide exactly three suggestions.
2. Each suggestion must be a concise, single sentence.
3. Respond ONLY with a JSON array of strings, like: ["Suggestion 1.", "Suggestion 2.", "Suggestion 3."]."""


def daily_prompt_request() -> str:
    return """You are a creative writing and music coach. Generate a single, short, evocative, and inspiring prompt for a musician's daily improvisation session. The prompt should focus on a mood, a specific image, a color, or a short abstract concept.

Example: "The sound of a forgotten memory."
Example: "A slow, deliberate piece in the key of F minor."

Respond ONLY with the prompt text, nothing else."""
