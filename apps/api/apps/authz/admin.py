from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Membership


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    fields = ['clinic', 'role', 'created_at']
    readonly_fields = ['created_at']
    autocomplete_fields = ['clinic']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'name', 'default_role', 'is_active', 'is_staff', 'is_superuser', 'created_at']
    list_filter = ['default_role', 'is_active', 'is_staff', 'is_superuser']
    search_fields = ['email', 'name']  # Required for autocomplete_fields
    readonly_fields = ['id', 'created_at', 'updated_at', 'last_login']
    inlines = [MembershipInline]

    fieldsets = (
        (None, {'fields': ('id', 'email', 'password')}),
        ('Personal Info', {'fields': ('name', 'default_role')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'name', 'default_role', 'is_active', 'is_staff'),
        }),
    )

    ordering = ['email']


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ['user', 'clinic', 'role', 'created_at']
    list_filter = ['role']
    search_fields = ['user__email', 'clinic__name']
    readonly_fields = ['id', 'created_at']
    autocomplete_fields = ['user', 'clinic']
