from django.urls import path

from .views import (
    LedgerTransactionDetailView,
    LedgerTransactionListView,
    PayeeMatchingRuleDetailView,
    PayeeMatchingRuleListView,
)


urlpatterns = [
    path("transactions", LedgerTransactionListView.as_view(), name="ledger-transactions"),
    path("transactions/<uuid:key>", LedgerTransactionDetailView.as_view(), name="ledger-transaction-detail"),
    path("payee-rules", PayeeMatchingRuleListView.as_view(), name="payee-rules"),
    path("payee-rules/<uuid:key>", PayeeMatchingRuleDetailView.as_view(), name="payee-rule-detail"),
]
