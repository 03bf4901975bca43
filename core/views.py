"""
Workspace-scoped API: base view, ledger listing and payee matching rules.
"""
import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.authentication import SessionAuthentication
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import PayeeMatchingRule, Transaction
from .pagination import normalize_page, paginate
from .permissions import HasWorkspaceRole, Role
from .serializers import PayeeMatchingRuleSerializer, TransactionSerializer

logger = logging.getLogger(__name__)


class WorkspaceAPIView(APIView):
    """
    Base for every `/api/tenant/<tenant_key>/...` view.

    Only session auth is enabled so an anonymous caller gets the same 403 as
    a non-member instead of a Basic auth challenge. `self.workspace` is set
    by `HasWorkspaceRole` before the handler runs.
    """

    authentication_classes = [SessionAuthentication]
    permission_classes = [HasWorkspaceRole]
    required_role = Role.VIEWER
    write_role = Role.EDITOR

    def get_required_role(self, request):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return self.required_role
        return self.write_role


class LedgerTransactionListView(WorkspaceAPIView):
    """Committed ledger transactions only; staged imports live elsewhere."""

    def get(self, request, tenant_key):
        page_number, page_size = normalize_page(
            request.query_params.get("pageNumber"),
            request.query_params.get("pageSize"),
        )
        qs = Transaction.objects.filter(workspace=self.workspace).order_by("-date", "payee", "-id")

        search_text = (request.query_params.get("searchText") or "").strip()
        if search_text:
            qs = qs.filter(
                Q(payee__icontains=search_text)
                | Q(memo__icontains=search_text)
                | Q(category__icontains=search_text)
            )

        rows, metadata = paginate(qs, page_number, page_size)
        logger.info("Ledger list for workspace %s: %d of %d", self.workspace.key, len(rows), metadata.total_count)
        return Response(
            {
                "Items": TransactionSerializer(rows, many=True).data,
                "Metadata": metadata.as_dict(),
            }
        )


class LedgerTransactionDetailView(WorkspaceAPIView):
    def get(self, request, tenant_key, key):
        tx = get_object_or_404(Transaction, workspace=self.workspace, key=key)
        return Response(TransactionSerializer(tx).data)


class PayeeMatchingRuleListView(WorkspaceAPIView):
    def get(self, request, tenant_key):
        rules = PayeeMatchingRule.objects.filter(workspace=self.workspace).order_by("-modified_at", "-id")
        return Response(PayeeMatchingRuleSerializer(rules, many=True).data)

    def post(self, request, tenant_key):
        serializer = PayeeMatchingRuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rule = serializer.save(workspace=self.workspace)
        logger.info("Created payee rule %s in workspace %s", rule.key, self.workspace.key)
        return Response(PayeeMatchingRuleSerializer(rule).data, status=status.HTTP_201_CREATED)


class PayeeMatchingRuleDetailView(WorkspaceAPIView):
    def delete(self, request, tenant_key, key):
        rule = get_object_or_404(PayeeMatchingRule, workspace=self.workspace, key=key)
        rule.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
