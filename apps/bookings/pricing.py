"""
Booking Pricing Module
======================

Money arithmetic shared by booking creation, the availability quote,
promo application, returns and extensions.

Classes:
    BookingPricingService: Rental days, GST and booking totals.

Example:
    Quoting a three day rental::

        from apps.bookings.pricing import BookingPricingService

        days = BookingPricingService.total_days(pickup, dropoff)
        base = car.calculate_rental_price(days)
        tax = BookingPricingService.calculate_tax(base)
        total = BookingPricingService.calculate_total(
            base_amount=base,
            tax_amount=tax,
            security_deposit=car.security_deposit,
        )
"""

from decimal import Decimal

from django.conf import settings

from apps.cars.models import money, rental_days


class BookingPricingService:
    """
    Stateless pricing rules for bookings.

    All amounts are ``Decimal`` rupees rounded half-up to two places.

    Methods:
        total_days: Whole rental days for a date range.
        services_total: Sum of additional service lines.
        calculate_tax: GST on the discounted subtotal.
        calculate_total: Amount payable for a booking.
        extension_cost: Price of moving a dropoff later.
        extra_km_fee: Charge for kilometres over the free allowance.
        fuel_refill_fee: Charge for returning the car with less fuel.
    """

    @staticmethod
    def total_days(pickup_date, dropoff_date):
        """
        Whole rental days between pickup and dropoff.

        Any part day counts as a full day, so 25 hours is two days.

        Args:
            pickup_date (datetime): Start of the rental.
            dropoff_date (datetime): End of the rental.

        Returns:
            int: Number of chargeable days.
        """
        return rental_days(pickup_date, dropoff_date)

    @staticmethod
    def services_total(services):
        """
        Sum of ``price x quantity`` over service dicts.

        Args:
            services (list[dict]): Items with ``price`` and optional ``quantity``.

        Returns:
            Decimal: Total of all services.
        """
        total = Decimal('0.00')
        for service in services or []:
            total += Decimal(str(service['price'])) * int(service.get('quantity', 1))
        return money(total)

    @staticmethod
    def calculate_tax(taxable_amount):
        """
        GST on the rental subtotal after discounts.

        Args:
            taxable_amount (Decimal): base + services - discount.

        Returns:
            Decimal: ``GST_RATE x taxable_amount``.
        """
        rate = Decimal(str(settings.GST_RATE))
        return money(max(Decimal(taxable_amount), Decimal('0.00')) * rate)

    @staticmethod
    def tax_label():
        """Description of the GST charge line, e.g. ``GST (18%)``."""
        percent = Decimal(str(settings.GST_RATE)) * 100
        return f"GST ({percent.normalize():f}%)"

    @staticmethod
    def calculate_total(
        base_amount,
        tax_amount,
        security_deposit,
        services_amount=Decimal('0.00'),
        discount_amount=Decimal('0.00'),
    ):
        """
        Amount payable for a new booking.

        Formula::

            base + services + tax - discount + deposit

        Returns:
            Decimal: The booking total.
        """
        return money(
            Decimal(base_amount)
            + Decimal(services_amount)
            + Decimal(tax_amount)
            - Decimal(discount_amount)
            + Decimal(security_deposit)
        )

    @staticmethod
    def extension_cost(car, current_dropoff, requested_dropoff):
        """
        Days and cost of an extension at the car's daily rate.

        Returns:
            tuple: (days, cost)
        """
        days = rental_days(current_dropoff, requested_dropoff)
        return days, money(car.price_per_day * days)

    @staticmethod
    def extra_km_fee(*, car, total_days, mileage_at_pickup, mileage_at_dropoff):
        """
        Kilometres driven over ``total_days x kilometer_limit`` and their price.

        Returns:
            tuple: (extra_km, fee); both zero when within the allowance or
            when a reading is missing.
        """
        if mileage_at_pickup is None or mileage_at_dropoff is None:
            return 0, Decimal('0.00')

        driven = mileage_at_dropoff - mileage_at_pickup
        extra_km = driven - total_days * car.kilometer_limit
        if extra_km <= 0:
            return 0, Decimal('0.00')
        return extra_km, money(extra_km * car.extra_km_charge)

    @staticmethod
    def fuel_refill_fee(*, fuel_at_pickup, fuel_at_dropoff):
        """
        Pro rata cost of the missing fuel, based on ``FUEL_REFILL_COST`` per full tank.

        Returns:
            Decimal: Zero when the tank is at least as full as at pickup.
        """
        if fuel_at_pickup is None or fuel_at_dropoff is None or fuel_at_dropoff >= fuel_at_pickup:
            return Decimal('0.00')
        missing = Decimal(fuel_at_pickup - fuel_at_dropoff) / 100
        return money(missing * Decimal(str(settings.FUEL_REFILL_COST)))
