"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data
    python manage.py create_sample_data --clear

This creates:
- 1 super admin, 1 fleet admin and 3 customers
- 8 cars across categories and cities, with images
- 3 offers (percentage, fixed, first booking)
- Bookings in every lifecycle state, some reviewed
- A welcome notification per customer
"""

import random
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User, UserRole, AuditLog
from apps.bookings.models import Booking, BookingStatus, PaymentMethod, PaymentStatus, CancelledBy, RefundStatus
from apps.cars.models import Availability, Car, CarImage, CarCategory, FuelType, Transmission, money
from apps.notifications.models import Notification
from apps.notifications.services import create_notification
from apps.offers.models import Offer, OfferType, ApplicableFor

PASSWORD = 'password123'


class Command(BaseCommand):
    help = 'Create sample data for trying out the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        cars = self.create_cars(users['fleet'])
        offers = self.create_offers(users['fleet'])
        self.create_bookings(users, cars, offers)
        self.create_notifications(users)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  root@example.com / admin123 (super admin)')
        self.stdout.write('  fleet@example.com / admin123 (admin)')
        for email in ('asha@example.com', 'ravi@example.com', 'meera@example.com'):
            self.stdout.write(f'  {email} / {PASSWORD}')

    def clear_data(self):
        """Delete everything this command creates, dependents first."""
        Notification.objects.all().delete()
        Booking.objects.all().delete()
        Offer.objects.all().delete()
        CarImage.objects.all().delete()
        Car.objects.all().delete()
        AuditLog.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='root@example.com').delete()

    def create_users(self):
        self.stdout.write('  Creating users...')

        root, created = User.objects.get_or_create(
            email='root@example.com',
            defaults={
                'name': 'Root Admin',
                'role': UserRole.SUPER_ADMIN,
                'is_staff': True,
                'is_superuser': True,
                'email_verified': True,
            }
        )
        if created:
            root.set_password('admin123')
            root.save()

        fleet, created = User.objects.get_or_create(
            email='fleet@example.com',
            defaults={
                'name': 'Fleet Manager',
                'role': UserRole.ADMIN,
                'is_staff': True,
                'email_verified': True,
            }
        )
        if created:
            fleet.set_password('admin123')
            fleet.save()

        customers = {}
        for key, name, phone, wallet in [
            ('asha', 'Asha Menon', '9876500001', Decimal('1500.00')),
            ('ravi', 'Ravi Kumar', '9876500002', Decimal('0.00')),
            ('meera', 'Meera Iyer', '9876500003', Decimal('250.00')),
        ]:
            user, created = User.objects.get_or_create(
                email=f'{key}@example.com',
                defaults={
                    'name': name,
                    'phone': phone,
                    'email_verified': key != 'meera',
                    'phone_verified': key == 'asha',
                    'wallet_balance': wallet,
                }
            )
            if created:
                user.set_password(PASSWORD)
                user.save()
            customers[key] = user

        return {'root': root, 'fleet': fleet, **customers}

    def create_cars(self, created_by):
        self.stdout.write('  Creating cars...')

        today = timezone.localdate()
        cars_data = [
            {
                'make': 'Maruti Suzuki', 'model': 'Swift', 'year': 2022, 'license_plate': 'KA01MS1001',
                'category': CarCategory.HATCHBACK, 'fuel_type': FuelType.PETROL,
                'transmission': Transmission.MANUAL, 'seats': 5,
                'price_per_day': Decimal('1200.00'), 'price_per_week': Decimal('7000.00'),
                'security_deposit': Decimal('2000.00'),
                'city': 'Bengaluru', 'latitude': Decimal('12.971599'), 'longitude': Decimal('77.594566'),
                'features': ['ac', 'bluetooth'], 'is_featured': True,
            },
            {
                'make': 'Honda', 'model': 'City', 'year': 2023, 'license_plate': 'KA03HC2002',
                'category': CarCategory.SEDAN, 'fuel_type': FuelType.PETROL, 'seats': 5,
                'price_per_day': Decimal('2200.00'), 'price_per_week': Decimal('13500.00'),
                'security_deposit': Decimal('3000.00'),
                'city': 'Bengaluru', 'latitude': Decimal('12.935192'), 'longitude': Decimal('77.624480'),
                'features': ['ac', 'sunroof', 'cruise_control'], 'is_recommended': True,
            },
            {
                'make': 'Mahindra', 'model': 'XUV700', 'year': 2023, 'license_plate': 'MH12XU3003',
                'category': CarCategory.SUV, 'fuel_type': FuelType.DIESEL, 'seats': 7,
                'price_per_day': Decimal('3800.00'), 'price_per_week': Decimal('24000.00'),
                'security_deposit': Decimal('5000.00'),
                'city': 'Pune', 'latitude': Decimal('18.520430'), 'longitude': Decimal('73.856744'),
                'features': ['ac', 'gps', 'sunroof'], 'is_featured': True,
                'current_mileage': 62000,
            },
            {
                'make': 'Toyota', 'model': 'Innova Crysta', 'year': 2021, 'license_plate': 'MH14TI4004',
                'category': CarCategory.MUV, 'fuel_type': FuelType.DIESEL, 'seats': 8,
                'price_per_day': Decimal('3500.00'), 'security_deposit': Decimal('5000.00'),
                'city': 'Pune', 'next_service': today - timedelta(days=3),
                'last_service': today - timedelta(days=183), 'current_mileage': 48000,
            },
            {
                'make': 'Tata', 'model': 'Nexon EV', 'year': 2024, 'license_plate': 'DL01TN5005',
                'category': CarCategory.ELECTRIC, 'fuel_type': FuelType.ELECTRIC, 'seats': 5,
                'price_per_day': Decimal('2600.00'), 'security_deposit': Decimal('3000.00'),
                'city': 'Delhi', 'latitude': Decimal('28.613939'), 'longitude': Decimal('77.209023'),
                'features': ['ac', 'fast_charging'], 'tags': ['eco'],
                'insurance_provider': 'Acko', 'insurance_valid_until': today + timedelta(days=12),
            },
            {
                'make': 'BMW', 'model': '5 Series', 'year': 2023, 'license_plate': 'DL02BM6006',
                'category': CarCategory.LUXURY, 'fuel_type': FuelType.PETROL, 'seats': 5,
                'price_per_day': Decimal('12000.00'), 'price_per_week': Decimal('75000.00'),
                'security_deposit': Decimal('25000.00'),
                'city': 'Delhi', 'features': ['ac', 'leather_seats', 'gps'], 'is_featured': True,
            },
            {
                'make': 'Hyundai', 'model': 'Creta', 'year': 2022, 'license_plate': 'TN09HC7007',
                'category': CarCategory.SUV, 'fuel_type': FuelType.DIESEL, 'seats': 5,
                'price_per_day': Decimal('2800.00'), 'security_deposit': Decimal('3000.00'),
                'city': 'Chennai', 'features': ['ac', 'bluetooth'],
            },
            {
                'make': 'Toyota', 'model': 'Camry Hybrid', 'year': 2022, 'license_plate': 'TN10TC8008',
                'category': CarCategory.SEDAN, 'fuel_type': FuelType.HYBRID, 'seats': 5,
                'price_per_day': Decimal('6500.00'), 'security_deposit': Decimal('10000.00'),
                'city': 'Chennai', 'availability': Availability.MAINTENANCE,
            },
        ]

        cars = []
        for data in cars_data:
            plate = data.pop('license_plate')
            car, created = Car.objects.get_or_create(
                license_plate=plate,
                defaults={**data, 'created_by': created_by, 'description': f"{data['make']} {data['model']} for rent"},
            )
            if created:
                slug = plate.lower()
                CarImage.objects.create(car=car, url=f'https://img.example.com/cars/{slug}/front.jpg', is_primary=True)
                CarImage.objects.create(car=car, url=f'https://img.example.com/cars/{slug}/interior.jpg')
            cars.append(car)

        return cars

    def create_offers(self, created_by):
        self.stdout.write('  Creating offers...')

        now = timezone.now()
        offers_data = [
            {
                'code': 'WELCOME10',
                'title': 'Welcome offer',
                'description': '10% off your first rental, up to 1000.',
                'offer_type': OfferType.FIRST_BOOKING,
                'discount_value': Decimal('10.00'),
                'max_discount': Decimal('1000.00'),
                'applicable_for': ApplicableFor.NEW_USERS,
            },
            {
                'code': 'WEEKLONG',
                'title': 'Week-long saver',
                'description': '15% off rentals of 7 days or more.',
                'offer_type': OfferType.PERCENTAGE,
                'discount_value': Decimal('15.00'),
                'min_rental_days': 7,
                'per_user_limit': 3,
                'is_featured': True,
            },
            {
                'code': 'FLAT500',
                'title': 'Flat 500 off',
                'description': 'Flat 500 off bookings above 5000.',
                'offer_type': OfferType.FIXED,
                'discount_value': Decimal('500.00'),
                'min_booking_amount': Decimal('5000.00'),
                'usage_limit': 100,
                'show_on_homepage': True,
            },
        ]

        offers = {}
        for data in offers_data:
            offer, _ = Offer.objects.get_or_create(
                code=data.pop('code'),
                defaults={
                    **data,
                    'valid_from': now - timedelta(days=7),
                    'valid_until': now + timedelta(days=60),
                    'created_by': created_by,
                },
            )
            offers[offer.code] = offer

        return offers

    def create_bookings(self, users, cars, offers):
        self.stdout.write('  Creating bookings...')

        if Booking.objects.exists():
            self.stdout.write('    Bookings already exist, skipping')
            return

        now = timezone.now()
        plans = [
            # (customer, car index, days from now, rental days, status)
            ('asha', 0, -40, 3, BookingStatus.COMPLETED),
            ('asha', 2, -20, 7, BookingStatus.COMPLETED),
            ('ravi', 1, -12, 2, BookingStatus.COMPLETED),
            ('ravi', 4, -2, 4, BookingStatus.ACTIVE),
            ('asha', 5, 5, 2, BookingStatus.CONFIRMED),
            ('meera', 6, 9, 3, BookingStatus.PENDING),
            ('ravi', 3, 15, 5, BookingStatus.CANCELLED),
        ]

        for key, car_index, offset, days, booking_status in plans:
            user = users[key]
            car = cars[car_index]
            pickup = now + timedelta(days=offset)
            base = car.calculate_rental_price(days)
            discount = Decimal('0.00')
            offer = None
            if days >= 7:
                offer = offers['WEEKLONG']
                discount = offer.calculate_discount(base, days=days, price_per_day=car.price_per_day)
            tax = money((base - discount) * settings.GST_RATE)
            total = money(base - discount + tax + car.security_deposit)

            booking = Booking(
                user=user,
                car=car,
                pickup_date=pickup,
                dropoff_date=pickup + timedelta(days=days),
                total_days=days,
                base_amount=base,
                discount_amount=discount,
                tax_amount=tax,
                security_deposit=car.security_deposit,
                total_amount=total,
                offer=offer,
                promo_code=offer.code if offer else '',
                payment_method=random.choice([PaymentMethod.CARD, PaymentMethod.UPI, PaymentMethod.WALLET]),
                status=booking_status,
                pickup_location={'type': 'branch', 'address': f'{car.city} central branch'},
                dropoff_location={'type': 'branch', 'address': f'{car.city} central branch'},
            )

            if booking_status in (BookingStatus.CONFIRMED, BookingStatus.ACTIVE, BookingStatus.COMPLETED):
                booking.payment_status = PaymentStatus.PAID
                booking.paid_amount = total
                booking.confirmed_at = pickup - timedelta(days=1)
            if booking_status in (BookingStatus.ACTIVE, BookingStatus.COMPLETED):
                booking.picked_up_at = pickup
                booking.mileage_at_pickup = car.current_mileage
            if booking_status == BookingStatus.COMPLETED:
                booking.dropped_off_at = booking.dropoff_date
                booking.completed_at = booking.dropoff_date
                booking.mileage_at_dropoff = car.current_mileage + days * 180
            if booking_status == BookingStatus.CANCELLED:
                booking.cancelled_at = now
                booking.cancelled_by = CancelledBy.USER
                booking.cancellation_reason = 'Change of plans'
                booking.cancellation_fee = booking.calculate_cancellation_fee(now)
                booking.refund_amount = total - booking.cancellation_fee
                booking.refund_status = RefundStatus.PENDING
            booking.save()

            if booking_status == BookingStatus.COMPLETED:
                rating = random.randint(3, 5)
                booking.review_rating = rating
                booking.review_comment = 'Clean car and smooth pickup.'
                booking.reviewed_at = booking.completed_at
                booking.save(update_fields=['review_rating', 'review_comment', 'reviewed_at'])
                car.add_rating(rating, {'cleanliness': rating, 'comfort': rating})

                car.total_bookings += 1
                car.total_revenue += total
                car.last_booked = booking.created_at
                car.save(update_fields=['total_bookings', 'total_revenue', 'last_booked'])
                user.total_spent += total
                user.save(update_fields=['total_spent'])

            if offer:
                offer.used_count += 1
                offer.save(update_fields=['used_count'])

    def create_notifications(self, users):
        self.stdout.write('  Creating notifications...')

        for key in ('asha', 'ravi', 'meera'):
            user = users[key]
            if user.notifications.exists():
                continue
            create_notification(
                user=user,
                title='Welcome aboard',
                message='Browse the fleet and book your first car. Use WELCOME10 for 10% off.',
            )
