# Generated manually for the offers app

import uuid
from decimal import Decimal
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('cars', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Offer',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('short_description', models.CharField(blank=True, max_length=300)),
                ('code', models.CharField(max_length=20, unique=True)),
                ('offer_type', models.CharField(choices=[('percentage', 'Percentage'), ('fixed', 'Fixed amount'), ('free_days', 'Free days'), ('combo', 'Combo'), ('first_booking', 'First booking'), ('seasonal', 'Seasonal'), ('referral', 'Referral'), ('loyalty', 'Loyalty')], max_length=20)),
                ('discount_value', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('min_discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('max_discount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('min_booking_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('min_rental_days', models.PositiveIntegerField(default=1)),
                ('applicable_for', models.CharField(choices=[('all', 'All users'), ('new_users', 'New users'), ('existing_users', 'Existing users'), ('specific_users', 'Specific users')], default='all', max_length=20)),
                ('applicable_categories', models.JSONField(blank=True, default=list)),
                ('valid_from', models.DateTimeField()),
                ('valid_until', models.DateTimeField()),
                ('active_days', models.JSONField(blank=True, default=list, help_text='Weekday codes (mon..sun); empty means every day')),
                ('active_hours_from', models.CharField(blank=True, max_length=5, validators=[django.core.validators.RegexValidator(message='Time must be in HH:MM format.', regex='^([01]\\d|2[0-3]):[0-5]\\d$')])),
                ('active_hours_to', models.CharField(blank=True, max_length=5, validators=[django.core.validators.RegexValidator(message='Time must be in HH:MM format.', regex='^([01]\\d|2[0-3]):[0-5]\\d$')])),
                ('usage_limit', models.PositiveIntegerField(blank=True, help_text='Empty means unlimited', null=True)),
                ('per_user_limit', models.PositiveIntegerField(default=1)),
                ('used_count', models.PositiveIntegerField(default=0)),
                ('display_priority', models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)])),
                ('is_featured', models.BooleanField(default=False)),
                ('show_on_homepage', models.BooleanField(default=False)),
                ('terms', models.JSONField(blank=True, default=list)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('expired', 'Expired'), ('scheduled', 'Scheduled')], default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('applicable_cars', models.ManyToManyField(blank=True, related_name='applicable_offers', to='cars.car')),
                ('excluded_cars', models.ManyToManyField(blank=True, related_name='excluded_offers', to='cars.car')),
                ('specific_users', models.ManyToManyField(blank=True, related_name='targeted_offers', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_offers', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_offers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'offers',
                'ordering': ['-display_priority', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='OfferUsage',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('used_at', models.DateTimeField(auto_now_add=True)),
                ('offer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='usages', to='offers.offer')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offer_usages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'offer_usages',
                'ordering': ['-used_at'],
            },
        ),
        migrations.AddIndex(
            model_name='offer',
            index=models.Index(fields=['status'], name='offers_status_idx'),
        ),
        migrations.AddIndex(
            model_name='offer',
            index=models.Index(fields=['valid_from', 'valid_until'], name='offers_validity_idx'),
        ),
        migrations.AddIndex(
            model_name='offer',
            index=models.Index(fields=['is_featured'], name='offers_featured_idx'),
        ),
        migrations.AddIndex(
            model_name='offer',
            index=models.Index(fields=['display_priority'], name='offers_priority_idx'),
        ),
        migrations.AddIndex(
            model_name='offerusage',
            index=models.Index(fields=['offer', 'user'], name='offer_usage_user_idx'),
        ),
        migrations.AddIndex(
            model_name='offerusage',
            index=models.Index(fields=['used_at'], name='offer_usage_used_at_idx'),
        ),
    ]
