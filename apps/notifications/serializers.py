from rest_framework import serializers
from .models import Notification, NotificationType, NotificationCategory, NotificationPriority


class NotificationSerializer(serializers.ModelSerializer):

    class Meta:
        model = Notification
        fields = [
            'id',
            'title',
            'message',
            'short_message',
            'type',
            'category',
            'priority',
            'metadata',
            'channels',
            'is_read',
            'is_archived',
            'email_sent',
            'read_at',
            'sent_at',
            'expires_at',
            'created_at',
        ]
        read_only_fields = fields


class NotificationListSerializer(serializers.Serializer):
    notifications = NotificationSerializer(many=True)
    total = serializers.IntegerField()
    unread_count = serializers.IntegerField()
    has_more = serializers.BooleanField()


class NotificationFilterSerializer(serializers.Serializer):
    """Query parameters for the inbox."""

    limit = serializers.IntegerField(min_value=1, max_value=100, default=50)
    skip = serializers.IntegerField(min_value=0, default=0)
    unread_only = serializers.BooleanField(default=False)
    archived = serializers.BooleanField(default=False)
    types = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="Comma-separated notification types"
    )

    def validate_types(self, value):
        types = [t.strip() for t in value.split(',') if t.strip()]
        invalid = [t for t in types if t not in NotificationType.values]
        if invalid:
            raise serializers.ValidationError(f"Unknown notification types: {', '.join(invalid)}")
        return types


class NotificationPreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    push = serializers.BooleanField(required=False)


class BulkNotificationSerializer(serializers.Serializer):
    user_type = serializers.ChoiceField(choices=['all', 'verified', 'with_bookings', 'specific'])
    user_ids = serializers.ListField(child=serializers.UUIDField(), required=False, allow_empty=True)
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    type = serializers.ChoiceField(choices=NotificationType.choices, default=NotificationType.SYSTEM)
    category = serializers.ChoiceField(choices=NotificationCategory.choices, default=NotificationCategory.INFO)
    priority = serializers.ChoiceField(choices=NotificationPriority.choices, default=NotificationPriority.MEDIUM)
    send_email = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if attrs['user_type'] == 'specific' and not attrs.get('user_ids'):
            raise serializers.ValidationError({'user_ids': 'Required for a specific audience'})
        return attrs


class NotificationStatsSerializer(serializers.Serializer):
    type = serializers.CharField()
    total = serializers.IntegerField()
    read = serializers.IntegerField()
    read_rate = serializers.FloatField()
    email_sent = serializers.IntegerField()
    sms_sent = serializers.IntegerField()
