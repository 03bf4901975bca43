"""
Import review API, mounted under `/api/tenant/<tenant_key>/import/`.
"""
import logging

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from core.exceptions import InvalidInput
from core.views import WorkspaceAPIView

from . import services
from .serializers import CompleteReviewSerializer, ReviewItemSerializer, SelectionSerializer

logger = logging.getLogger(__name__)


class ImportUploadView(WorkspaceAPIView):
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, tenant_key):
        upload = request.FILES.get("file")
        logger.debug(
            "Upload started for workspace %s: %s",
            self.workspace.key,
            getattr(upload, "name", None),
        )
        try:
            services.validate_upload(getattr(upload, "name", None), getattr(upload, "size", None))
        except InvalidInput as exc:
            logger.warning("Rejected upload for workspace %s: %s", self.workspace.key, exc.message)
            raise

        result = services.import_file(self.workspace, upload.read(), upload.name)
        logger.info(
            "Imported %s into workspace %s: imported=%d new=%d exact=%d potential=%d errors=%d",
            upload.name,
            self.workspace.key,
            result.imported_count,
            result.new_count,
            result.exact_duplicate_count,
            result.potential_duplicate_count,
            len(result.errors),
        )
        return Response(result.as_dict())


class ImportReviewView(WorkspaceAPIView):
    def get(self, request, tenant_key):
        params = request.query_params
        page = services.get_pending_review(
            self.workspace,
            page_number=params.get("pageNumber"),
            page_size=params.get("pageSize"),
            sort_by=params.get("sortBy"),
            search_text=params.get("searchText"),
        )
        return Response(
            {
                "Items": ReviewItemSerializer(page.items, many=True).data,
                "Metadata": page.metadata.as_dict(),
            }
        )

    def delete(self, request, tenant_key):
        deleted = services.delete_all(self.workspace)
        logger.info("Discarded %d staged rows for workspace %s", deleted, self.workspace.key)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ImportReviewSummaryView(WorkspaceAPIView):
    def get(self, request, tenant_key):
        return Response(services.get_summary(self.workspace))


class ImportReviewSelectionView(WorkspaceAPIView):
    parser_classes = [JSONParser]

    def post(self, request, tenant_key):
        serializer = SelectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = services.set_selection(
            self.workspace,
            serializer.validated_data["Keys"],
            serializer.validated_data["IsSelected"],
        )
        logger.debug("Selection changed on %d rows in workspace %s", updated, self.workspace.key)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ImportReviewSelectAllView(WorkspaceAPIView):
    def post(self, request, tenant_key):
        services.select_all(self.workspace)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ImportReviewDeselectAllView(WorkspaceAPIView):
    def post(self, request, tenant_key):
        services.deselect_all(self.workspace)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ImportReviewCompleteView(WorkspaceAPIView):
    parser_classes = [JSONParser]

    def post(self, request, tenant_key):
        logger.debug("Completing import review for workspace %s", self.workspace.key)
        serializer = CompleteReviewSerializer.from_request_data(request.data)
        if not serializer.is_valid():
            logger.warning("Rejected completion for workspace %s: %s", self.workspace.key, serializer.errors)
            serializer.is_valid(raise_exception=True)

        result = services.complete_review(self.workspace, serializer.validated_data["Keys"])
        return Response(result.as_dict())
