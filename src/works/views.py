"""
API views for works and their pipeline stages.

All endpoints except health require a JWT (``Authorization: Bearer <token>``)
and only ever see the caller's own works; anything else is a 404.
"""

import logging

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.analysis import get_analyzer_names
from src.generation import TextServiceError

from . import jobs, services
from .exceptions import (
    AudioAlreadyAttached,
    DispatchError,
    InvalidTransition,
    InvalidUpload,
    MalformedStageOutput,
    MetadataIncomplete,
    MissingStageInputs,
    NotReadyForSubmission,
    StageError,
    StorageError,
    WorkError,
    WorkNotFound,
)
from .models import StageAttempt, Work
from .serializers import (
    BulkDeleteSerializer,
    ConfirmMetadataSerializer,
    TitleRequestSerializer,
    WorkCaptureSerializer,
    WorkUpdateSerializer,
    attempt_to_dict,
    work_snapshot,
    work_summary,
)
from .stages import (
    artwork_payload,
    daily_prompt,
    run_artwork,
    run_augmentation,
    run_description,
    run_suggestions,
    run_title,
)

logger = logging.getLogger(__name__)

Stage = StageAttempt.Stage

# Most specific first
ERROR_STATUS = [
    (WorkNotFound, status.HTTP_404_NOT_FOUND),
    (InvalidUpload, status.HTTP_400_BAD_REQUEST),
    (MissingStageInputs, status.HTTP_400_BAD_REQUEST),
    (MalformedStageOutput, status.HTTP_502_BAD_GATEWAY),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (AudioAlreadyAttached, status.HTTP_409_CONFLICT),
    (MetadataIncomplete, status.HTTP_409_CONFLICT),
    (NotReadyForSubmission, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
    (DispatchError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StageError, status.HTTP_502_BAD_GATEWAY),
]


def error_response(exc: WorkError) -> Response:
    """Map a work pipeline error to the JSON error shape and status code."""
    for error_class, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            break
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({"error": exc.code, "message": str(exc)}, status=code)


def generation_error_response(exc: TextServiceError) -> Response:
    return Response(
        {"error": "generation_failed", "message": str(exc), "reason": exc.label},
        status=status.HTTP_502_BAD_GATEWAY,
    )


def not_found() -> Response:
    return Response(
        {"error": "not_found", "message": "Work not found"},
        status=status.HTTP_404_NOT_FOUND,
    )


def validation_error(errors) -> Response:
    return Response(
        {"error": "validation_error", "message": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def poll_url(work: Work) -> str:
    return f"/api/works/{work.id}/"


class WorkView(APIView):
    """Base view resolving ``work_id`` to one of the caller's works."""

    permission_classes = [IsAuthenticated]

    def get_work(self, request, work_id) -> Work | None:
        return Work.get_or_none(work_id, user=request.user)


class HealthView(APIView):
    """GET /api/health/ — server availability check."""

    permission_classes = []
    authentication_classes = []

    def get(self, request):
        analyzers = get_analyzer_names()
        if not analyzers:
            return Response(
                {"status": "error", "message": "No analyzers registered"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response({"status": "ok", "analyzers": analyzers})


class WorkListView(APIView):
    """
    List or create works.

    GET /api/works/
    POST /api/works/
        JSON {"title": "...", "is_improvisation": true} captures an idea.
        Multipart with an ``audio`` file also attaches it (drag and drop)
        and returns 202 with a poll URL.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get(self, request):
        works = Work.objects.filter(user=request.user)
        return Response({"works": [work_summary(w) for w in works]})

    def post(self, request):
        serializer = WorkCaptureSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        title = serializer.validated_data.get("title") or None
        is_improvisation = serializer.validated_data.get("is_improvisation")
        if "is_improvisation" not in request.data:
            # Multipart forms report an omitted boolean as empty, not absent
            is_improvisation = True

        audio = request.FILES.get("audio")
        if audio is None:
            work = services.capture_idea(request.user, title=title, is_improvisation=is_improvisation)
            return Response(work_snapshot(work), status=status.HTTP_201_CREATED)

        try:
            work, attempt = services.capture_and_attach(
                request.user, audio, title=title, is_improvisation=is_improvisation
            )
        except WorkError as e:
            return error_response(e)

        return Response(
            {
                "work_id": str(work.id),
                "status": work.status,
                "attempt_id": str(attempt.id),
                "poll_url": poll_url(work),
            },
            status=status.HTTP_202_ACCEPTED,
        )


class WorkDetailView(WorkView):
    """
    GET /api/works/{id}/ — snapshot with readiness, pre-flight and poll hint.
    PATCH /api/works/{id}/ — user edits.
    DELETE /api/works/{id}/ — delete, reclaiming stored blobs.
    """

    def get(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()
        return Response(work_snapshot(work))

    def patch(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()

        serializer = WorkUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors)

        try:
            services.update_work(work, serializer.validated_data)
        except WorkError as e:
            return error_response(e)
        return Response(work_snapshot(work))

    def delete(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()
        failed = services.delete_work(work)
        return Response({"deleted": str(work_id), "failed_blobs": failed})


class BulkDeleteView(APIView):
    """POST /api/works/bulk-delete/ — {"ids": [...]}, best effort."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        return Response(services.bulk_delete(request.user, serializer.validated_data["ids"]))


class WorkAudioView(WorkView):
    """
    POST /api/works/{id}/audio/ — attach audio and start analysis (202).
    DELETE /api/works/{id}/audio/ — clear audio and reset derived fields.
    """

    parser_classes = [MultiPartParser]

    def post(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()

        audio = request.FILES.get("audio")
        if not audio:
            return validation_error("audio file is required")

        try:
            attempt = services.attach_audio(work, audio)
        except WorkError as e:
            return error_response(e)

        return Response(
            {
                "work_id": str(work.id),
                "status": work.status,
                "attempt_id": str(attempt.id),
                "poll_url": poll_url(work),
            },
            status=status.HTTP_202_ACCEPTED,
        )

    def delete(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()
        failed = services.clear_audio(work)
        return Response({**work_snapshot(work), "failed_blobs": failed})


class WorkArtworkView(WorkView):
    """
    POST /api/works/{id}/artwork/ — upload cover art (multipart ``artwork``).
    DELETE /api/works/{id}/artwork/ — remove uploaded cover art.
    """

    parser_classes = [MultiPartParser]

    def post(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()

        artwork = request.FILES.get("artwork")
        if not artwork:
            return validation_error("artwork file is required")

        try:
            services.upload_artwork(work, artwork)
        except WorkError as e:
            return error_response(e)
        return Response(work_snapshot(work))

    def delete(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()
        failed = services.remove_artwork(work)
        return Response({**work_snapshot(work), "failed_blobs": failed})


class StageView(WorkView):
    """Runs one stage inline for the caller's work and returns its result."""

    stage: str

    def get_payload(self, request, work: Work) -> dict:
        return {"work_id": str(work.id)}

    def run(self, **payload) -> dict:
        raise NotImplementedError

    def post(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()

        payload = self.get_payload(request, work)
        if payload is None:
            return validation_error(self.payload_errors)

        try:
            result = jobs.run_inline(self.stage, work, payload, self.run)
        except TextServiceError as e:
            return generation_error_response(e)
        except WorkError as e:
            return error_response(e)
        return Response(result)


class ArtworkPromptView(StageView):
    """POST /api/works/{id}/artwork-prompt/ — (re)generate the artwork prompt."""

    stage = Stage.ARTWORK

    def get_payload(self, request, work):
        return artwork_payload(work)

    def run(self, **payload):
        return run_artwork(**payload)


class DistributionMetadataView(StageView):
    """POST /api/works/{id}/distribution-metadata/ — categorization + description."""

    stage = Stage.AUGMENTATION

    def run(self, **payload):
        return run_augmentation(**payload)


class DescriptionView(StageView):
    """POST /api/works/{id}/description/ — suggest a description (not saved)."""

    stage = Stage.DESCRIPTION

    def run(self, **payload):
        return run_description(**payload)


class TitleView(StageView):
    """POST /api/works/{id}/title/ — suggest a title (not saved)."""

    stage = Stage.TITLE

    def get_payload(self, request, work):
        serializer = TitleRequestSerializer(data=request.data)
        if not serializer.is_valid():
            self.payload_errors = serializer.errors
            return None
        return {"work_id": str(work.id), "mode": serializer.validated_data["mode"]}

    def run(self, **payload):
        return run_title(**payload)


class SuggestionsView(StageView):
    """POST /api/works/{id}/suggestions/ — three ideas for developing the piece (not saved)."""

    stage = Stage.SUGGESTIONS

    def run(self, **payload):
        return run_suggestions(**payload)


class DailyPromptView(APIView):
    """GET /api/prompts/daily/ — an improvisation prompt for the day."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(daily_prompt())


class ConfirmMetadataView(WorkView):
    """POST /api/works/{id}/confirm-metadata/ — {"confirmed": true|false}."""

    def post(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()

        serializer = ConfirmMetadataSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)

        try:
            services.confirm_metadata(work, serializer.validated_data["confirmed"])
        except WorkError as e:
            return error_response(e)
        return Response(work_snapshot(work))


class WorkJobsView(WorkView):
    """GET /api/works/{id}/jobs/ — stage attempts, newest first."""

    def get(self, request, work_id):
        work = self.get_work(request, work_id)
        if work is None:
            return not_found()
        return Response({"jobs": [attempt_to_dict(a) for a in work.attempts.all()]})


class JobRetryView(APIView):
    """POST /api/jobs/{id}/retry/ — re-dispatch an attempt with its payload."""

    permission_classes = [IsAuthenticated]

    def post(self, request, attempt_id):
        attempt = StageAttempt.get_or_none(attempt_id)
        if attempt is None or attempt.work.user_id != request.user.id:
            return Response(
                {"error": "not_found", "message": "Job not found"},
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            retried = jobs.retry(attempt)
        except WorkError as e:
            return error_response(e)

        logger.info(f"User {request.user.id} retried attempt {attempt.id}")
        return Response(
            {"attempt": attempt_to_dict(retried), "poll_url": poll_url(attempt.work)},
            status=status.HTTP_202_ACCEPTED,
        )
