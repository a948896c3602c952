"""Django admin configuration for the branches app."""
from django.contrib import admin

from branches.models import AuditLog, Branch, District, Officer


@admin.register(District)
class DistrictAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    readonly_fields = ("id", "created_at", "updated_at")


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "district", "is_active", "created_at")
    list_filter = ("is_active", "district")
    search_fields = ("name", "code", "district__name", "address")
    readonly_fields = ("id", "created_at", "updated_at")
    list_select_related = ("district",)
    list_per_page = 50


@admin.register(Officer)
class OfficerAdmin(admin.ModelAdmin):
    list_display = ("name", "branch", "user", "is_active")
    list_filter = ("is_active", "branch__district", "branch")
    search_fields = ("name", "branch__name", "user__email")
    list_select_related = ("branch", "user")
    raw_id_fields = ("user",)


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "entity_type", "entity_id", "actor_name", "district", "branch")
    list_filter = ("action", "entity_type", "district")
    search_fields = ("entity_id", "actor_name", "actor__email")
    readonly_fields = [f.name for f in AuditLog._meta.fields]
    list_select_related = ("actor", "district", "branch")
    list_per_page = 100

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
