"""URL routing for the works API."""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

urlpatterns = [
    # Auth endpoints
    path("auth/token/", TokenObtainPairView.as_view(), name="auth-token"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="auth-token-refresh"),
    # Works
    path("health/", views.HealthView.as_view(), name="health"),
    path("works/", views.WorkListView.as_view(), name="work-list"),
    path("works/bulk-delete/", views.BulkDeleteView.as_view(), name="work-bulk-delete"),
    path("works/<uuid:work_id>/", views.WorkDetailView.as_view(), name="work-detail"),
    path("works/<uuid:work_id>/audio/", views.WorkAudioView.as_view(), name="work-audio"),
    path("works/<uuid:work_id>/artwork/", views.WorkArtworkView.as_view(), name="work-artwork"),
    path(
        "works/<uuid:work_id>/artwork-prompt/",
        views.ArtworkPromptView.as_view(),
        name="work-artwork-prompt",
    ),
    path(
        "works/<uuid:work_id>/distribution-metadata/",
        views.DistributionMetadataView.as_view(),
        name="work-distribution-metadata",
    ),
    path("works/<uuid:work_id>/description/", views.DescriptionView.as_view(), name="work-description"),
    path("works/<uuid:work_id>/title/", views.TitleView.as_view(), name="work-title"),
    path(
        "works/<uuid:work_id>/suggestions/",
        views.SuggestionsView.as_view(),
        name="work-suggestions",
    ),
    path(
        "works/<uuid:work_id>/confirm-metadata/",
        views.ConfirmMetadataView.as_view(),
        name="work-confirm-metadata",
    ),
    path("works/<uuid:work_id>/jobs/", views.WorkJobsView.as_view(), name="work-jobs"),
    path("jobs/<uuid:attempt_id>/retry/", views.JobRetryView.as_view(), name="job-retry"),
    path("prompts/daily/", views.DailyPromptView.as_view(), name="daily-prompt"),
]
