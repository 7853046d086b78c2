from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Referral, AuditLog, UserRole, AccountStatus, phone_validator


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, allow_blank=True, max_length=200)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    state = serializers.CharField(required=False, allow_blank=True, max_length=100)
    country = serializers.CharField(required=False, allow_blank=True, max_length=100)
    pincode = serializers.RegexField(r'^\d{6}$', required=False, allow_blank=True)


class UserSerializer(serializers.ModelSerializer):
    """Profile of the authenticated user."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'phone',
            'driver_license',
            'address',
            'role',
            'status',
            'email_verified',
            'phone_verified',
            'wallet_balance',
            'total_spent',
            'referral_code',
            'referral_points',
            'total_referrals',
            'preferences',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class UserPublicSerializer(serializers.ModelSerializer):
    """Minimal user info embedded in other resources."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email']
        read_only_fields = fields


class UserRegistrationSerializer(serializers.Serializer):
    """Input serializer for user registration."""

    name = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )
    phone = serializers.CharField(validators=[phone_validator])
    driver_license = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = AddressSerializer(required=False)
    referral_code = serializers.CharField(max_length=8, required=False, allow_blank=True)

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UpdateDetailsSerializer(serializers.Serializer):
    """Partial profile update."""

    name = serializers.CharField(max_length=50, required=False)
    phone = serializers.CharField(validators=[phone_validator], required=False)
    address = AddressSerializer(required=False)
    preferences = serializers.DictField(required=False)


class UpdatePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(style={'input_type': 'password'})
    new_password = serializers.CharField(
        validators=[validate_password],
        style={'input_type': 'password'}
    )


class PasswordResetRequestSerializer(serializers.Serializer):
    """Serializer for password reset request."""

    email = serializers.EmailField(required=True)


class PasswordResetConfirmSerializer(serializers.Serializer):
    """Serializer for password reset confirmation."""

    token = serializers.CharField(required=True)
    new_password = serializers.CharField(
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    new_password_confirm = serializers.CharField(
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({
                'new_password_confirm': 'Passwords do not match'
            })
        return attrs


class VerifyEmailSerializer(serializers.Serializer):
    token = serializers.CharField(help_text="Email verification token")


class VerifyPhoneSerializer(serializers.Serializer):
    otp = serializers.RegexField(r'^\d{6}$', help_text="6-digit one-time password")


class ReferralSerializer(serializers.ModelSerializer):
    referred_user = UserPublicSerializer(read_only=True)

    class Meta:
        model = Referral
        fields = ['id', 'referred_user', 'referral_code', 'reward_amount', 'status', 'completed_at', 'created_at']
        read_only_fields = fields


class ReferralStatsSerializer(serializers.Serializer):
    referral_code = serializers.CharField()
    referral_link = serializers.CharField()
    referral_points = serializers.IntegerField()
    total_referrals = serializers.IntegerField()
    completed_referrals = serializers.IntegerField()
    pending_referrals = serializers.IntegerField()
    total_earned = serializers.DecimalField(max_digits=12, decimal_places=2)
    referrals = ReferralSerializer(many=True)


# =============================================================================
# Admin serializers
# =============================================================================

class AdminUserListSerializer(serializers.ModelSerializer):
    booking_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'phone',
            'role',
            'status',
            'email_verified',
            'wallet_balance',
            'total_spent',
            'booking_count',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class AdminUserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50, required=False)
    phone = serializers.CharField(validators=[phone_validator], required=False)
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    status = serializers.ChoiceField(choices=AccountStatus.choices, required=False)
    email_verified = serializers.BooleanField(required=False)
    wallet_balance = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)


class UserFilterSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    status = serializers.ChoiceField(choices=AccountStatus.choices, required=False)
    email_verified = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True)


class AuditLogSerializer(serializers.ModelSerializer):
    performed_by = UserPublicSerializer(read_only=True)
    target_user = UserPublicSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'action', 'performed_by', 'target_user', 'changes', 'ip_address', 'user_agent', 'created_at']
        read_only_fields = fields


class AuditLogFilterSerializer(serializers.Serializer):
    action = serializers.CharField(required=False)
    user_id = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
