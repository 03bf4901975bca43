from django.contrib import admin

from .models import ImportReviewTransaction


@admin.register(ImportReviewTransaction)
class ImportReviewTransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "payee", "amount", "duplicate_status", "is_selected", "workspace", "created_at")
    list_filter = ("workspace", "duplicate_status", "is_selected")
    search_fields = ("payee", "memo", "external_id")
    readonly_fields = ("key", "duplicate_of_key", "created_at")
