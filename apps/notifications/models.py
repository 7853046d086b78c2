from django.db import models
from django.utils import timezone
from datetime import timedelta
import uuid


SHORT_MESSAGE_LENGTH = 100


def default_expiry():
    return timezone.now() + timedelta(days=30)


def default_channels():
    return ['in_app']


class NotificationType(models.TextChoices):
    BOOKING = 'booking', 'Booking'
    PAYMENT = 'payment', 'Payment'
    OFFER = 'offer', 'Offer'
    REFERRAL = 'referral', 'Referral'
    SYSTEM = 'system', 'System'
    ALERT = 'alert', 'Alert'
    REMINDER = 'reminder', 'Reminder'
    PROMOTIONAL = 'promotional', 'Promotional'


class NotificationCategory(models.TextChoices):
    INFO = 'info', 'Info'
    SUCCESS = 'success', 'Success'
    WARNING = 'warning', 'Warning'
    ERROR = 'error', 'Error'
    PROMOTION = 'promotion', 'Promotion'


class NotificationPriority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'
    URGENT = 'urgent', 'Urgent'


class NotificationChannel(models.TextChoices):
    IN_APP = 'in_app', 'In-app'
    EMAIL = 'email', 'Email'
    SMS = 'sms', 'SMS'
    PUSH = 'push', 'Push'


class NotificationQuerySet(models.QuerySet):

    def for_user(self, user):
        return self.filter(user=user)

    def live(self, now=None):
        """Exclude notifications past their expiry."""
        now = now or timezone.now()
        return self.filter(models.Q(expires_at__isnull=True) | models.Q(expires_at__gt=now))

    def unread(self):
        return self.filter(is_read=False, is_archived=False)


class Notification(models.Model):
    """In-app message addressed to one user, optionally mirrored to email."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='notifications'
    )

    title = models.CharField(max_length=200)
    message = models.TextField()
    short_message = models.CharField(max_length=SHORT_MESSAGE_LENGTH + 3, blank=True, editable=False)

    type = models.CharField(max_length=20, choices=NotificationType.choices, default=NotificationType.SYSTEM)
    category = models.CharField(max_length=20, choices=NotificationCategory.choices, default=NotificationCategory.INFO)
    priority = models.CharField(max_length=20, choices=NotificationPriority.choices, default=NotificationPriority.MEDIUM)
    metadata = models.JSONField(default=dict, blank=True)
    channels = models.JSONField(default=default_channels, blank=True)

    # Requested delivery
    send_email = models.BooleanField(default=False)
    send_sms = models.BooleanField(default=False)
    send_push = models.BooleanField(default=False)

    # Delivery state
    is_read = models.BooleanField(default=False)
    is_archived = models.BooleanField(default=False)
    email_sent = models.BooleanField(default=False)
    sms_sent = models.BooleanField(default=False)
    push_sent = models.BooleanField(default=False)

    read_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(default=default_expiry, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'is_read', 'is_archived'], name='notif_user_state_idx'),
            models.Index(fields=['user', 'created_at'], name='notif_user_created_idx'),
            models.Index(fields=['type', 'created_at'], name='notif_type_created_idx'),
            models.Index(fields=['expires_at'], name='notif_expires_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} -> {self.user_id}"

    def save(self, *args, **kwargs):
        self.short_message = self.shorten(self.message)
        super().save(*args, **kwargs)

    @staticmethod
    def shorten(message):
        if len(message) > SHORT_MESSAGE_LENGTH:
            return message[:SHORT_MESSAGE_LENGTH] + '...'
        return message

    def mark_as_read(self):
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=['is_read', 'read_at', 'updated_at'])

    def mark_as_unread(self):
        self.is_read = False
        self.read_at = None
        self.save(update_fields=['is_read', 'read_at', 'updated_at'])

    def archive(self):
        self.is_archived = True
        self.save(update_fields=['is_archived', 'updated_at'])

    def unarchive(self):
        self.is_archived = False
        self.save(update_fields=['is_archived', 'updated_at'])
