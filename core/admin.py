from django.contrib import admin

from .models import PayeeMatchingRule, Transaction, Workspace, WorkspaceMembership


admin.site.site_header = "PocketLedger – System Admin"
admin.site.site_title = "PocketLedger System Admin"


def _superuser_only(request):
    return request.user.is_active and request.user.is_superuser


admin.site.has_permission = _superuser_only


class WorkspaceMembershipInline(admin.TabularInline):
    model = WorkspaceMembership
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    list_display = ("name", "key", "created_at")
    search_fields = ("name", "key")
    readonly_fields = ("key", "created_at")
    inlines = [WorkspaceMembershipInline]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "payee", "amount", "category", "external_id", "workspace")
    list_filter = ("workspace",)
    search_fields = ("payee", "memo", "external_id")
    readonly_fields = ("key", "created_at")


@admin.register(PayeeMatchingRule)
class PayeeMatchingRuleAdmin(admin.ModelAdmin):
    list_display = ("payee_pattern", "payee_is_regex", "category", "match_count", "workspace")
    list_filter = ("workspace", "payee_is_regex")
    search_fields = ("payee_pattern", "category")
