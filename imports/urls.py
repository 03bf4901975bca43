from django.urls import path

from .views import (
    ImportReviewCompleteView,
    ImportReviewDeselectAllView,
    ImportReviewSelectAllView,
    ImportReviewSelectionView,
    ImportReviewSummaryView,
    ImportReviewView,
    ImportUploadView,
)


urlpatterns = [
    path("upload", ImportUploadView.as_view(), name="import-upload"),
    path("review", ImportReviewView.as_view(), name="import-review"),
    path("review/summary", ImportReviewSummaryView.as_view(), name="import-review-summary"),
    path("review/selection", ImportReviewSelectionView.as_view(), name="import-review-selection"),
    path("review/select-all", ImportReviewSelectAllView.as_view(), name="import-review-select-all"),
    path("review/deselect-all", ImportReviewDeselectAllView.as_view(), name="import-review-deselect-all"),
    path("review/complete", ImportReviewCompleteView.as_view(), name="import-review-complete"),
]
