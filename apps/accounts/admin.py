from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, Referral, AuditLog, AccountStatus, UserRole


BADGE_STYLE = 'color: white; padding: 3px 8px; border-radius: 10px; font-size: 11px;'

STATUS_COLORS = {
    AccountStatus.ACTIVE: '#2E7D32',
    AccountStatus.SUSPENDED: '#EF6C00',
    AccountStatus.DEACTIVATED: '#9E9E9E',
}

ROLE_COLORS = {
    UserRole.USER: '#607D8B',
    UserRole.ADMIN: '#1565C0',
    UserRole.SUPER_ADMIN: '#6A1B9A',
}


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for renter and staff accounts."""

    list_display = [
        'email',
        'name',
        'phone',
        'role_badge',
        'status_badge',
        'email_verified_badge',
        'wallet_balance',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'role',
        'status',
        'email_verified',
        'phone_verified',
        'created_at',
    ]

    search_fields = [
        'email',
        'name',
        'phone',
        'driver_license',
        'referral_code',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'name', 'phone', 'driver_license', 'address', 'password')
        }),
        ('Role & Status', {
            'fields': ('role', 'status', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Verification', {
            'fields': ('email_verified', 'phone_verified'),
        }),
        ('Security', {
            'fields': ('login_attempts', 'lock_until'),
            'classes': ('collapse',),
        }),
        ('Wallet & Referral', {
            'fields': ('wallet_balance', 'total_spent', 'referral_code', 'referred_by', 'referral_points', 'total_referrals'),
        }),
        ('Preferences', {
            'fields': ('preferences',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'name', 'phone', 'password1', 'password2'),
        }),
        ('Role', {
            'fields': ('role', 'is_staff'),
        }),
    )

    readonly_fields = [
        'referral_code',
        'is_active',
        'created_at',
        'updated_at',
        'last_login',
    ]

    raw_id_fields = ['referred_by']
    filter_horizontal = ['groups', 'user_permissions']

    def role_badge(self, obj):
        return format_html(
            '<span style="background: {}; {}">{}</span>',
            ROLE_COLORS.get(obj.role, '#607D8B'),
            BADGE_STYLE,
            obj.get_role_display(),
        )
    role_badge.short_description = 'Role'
    role_badge.admin_order_field = 'role'

    def status_badge(self, obj):
        return format_html(
            '<span style="background: {}; {}">{}</span>',
            STATUS_COLORS.get(obj.status, '#9E9E9E'),
            BADGE_STYLE,
            obj.get_status_display(),
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def email_verified_badge(self, obj):
        """Display email verification status as colored badge."""
        if obj.email_verified:
            return format_html('<span style="background: #2E7D32; {}">Verified</span>', BADGE_STYLE)
        return format_html('<span style="background: #F9A825; {}">Pending</span>', BADGE_STYLE)
    email_verified_badge.short_description = 'Email'
    email_verified_badge.admin_order_field = 'email_verified'

    actions = [
        'activate_users',
        'suspend_users',
        'verify_emails',
        'unlock_users',
    ]

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        count = 0
        for user in queryset:
            user.status = AccountStatus.ACTIVE
            user.save()
            count += 1
        self.message_user(request, f'Activated {count} user(s).')

    @admin.action(description='Suspend selected users')
    def suspend_users(self, request, queryset):
        """Suspend selected users (super admins are skipped)."""
        safe_queryset = queryset.exclude(role=UserRole.SUPER_ADMIN)
        count = safe_queryset.update(status=AccountStatus.SUSPENDED)
        skipped = queryset.count() - count
        msg = f'Suspended {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} super admin(s).'
        self.message_user(request, msg)

    @admin.action(description='Mark emails as verified')
    def verify_emails(self, request, queryset):
        count = queryset.update(email_verified=True, verification_token=None, verification_token_expires=None)
        self.message_user(request, f'Verified {count} email(s).')

    @admin.action(description='Clear login lockout')
    def unlock_users(self, request, queryset):
        count = queryset.update(login_attempts=0, lock_until=None)
        self.message_user(request, f'Unlocked {count} user(s).')


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ['referrer', 'referred_user', 'referral_code', 'reward_amount', 'status', 'created_at', 'completed_at']
    list_filter = ['status', 'created_at']
    search_fields = ['referrer__email', 'referred_user__email', 'referral_code']
    raw_id_fields = ['referrer', 'referred_user']
    readonly_fields = ['created_at', 'completed_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'performed_by', 'target_user', 'ip_address', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['action', 'performed_by__email', 'target_user__email']
    readonly_fields = ['action', 'performed_by', 'target_user', 'changes', 'ip_address', 'user_agent', 'created_at']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False
