"""
Management command to create a demo store for trying out the POS.

Usage:
    python manage.py seed_demo_store
    python manage.py seed_demo_store --clear

This creates:
- 1 store (11% tax, 5% service charge, rounding to 100)
- 1 register
- 4 staff accounts, one per role
- A small menu with stock
- 2 customers
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import Role, User
from apps.orders.models import AuditLog, Order, RefundVoid
from apps.shifts.models import Shift
from apps.stores.models import Customer, Product, Register, Store

DEMO_SLUG = 'demo-coffee'
DEMO_PASSWORD = 'password123'

STAFF = [
    ('admin@example.com', 'Admin User', Role.ADMIN),
    ('manager@example.com', 'Maya Manager', Role.MANAGER),
    ('cashier@example.com', 'Citra Cashier', Role.CASHIER),
    ('barista@example.com', 'Bima Barista', Role.BARISTA),
]

MENU = [
    ('Espresso', 'ESP', 18000),
    ('Americano', 'AMR', 24000),
    ('Cappuccino', 'CAP', 30000),
    ('Latte', 'LAT', 32000),
    ('Flat White', 'FLW', 33000),
    ('Mocha', 'MOC', 35000),
    ('Matcha Latte', 'MAT', 34000),
    ('Thai Tea', 'THT', 28000),
    ('Butter Croissant', 'CRO', 22000),
    ('Banana Bread', 'BNB', 20000),
]


class Command(BaseCommand):
    help = 'Create a demo store with staff, a register and a menu'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Remove the demo store and its data first',
        )
        parser.add_argument(
            '--stock',
            type=int,
            default=50,
            help='Starting stock for every product (default: 50)',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing demo store...')
            self.clear_data()

        self.stdout.write('Creating demo store...')

        store = self.create_store()
        self.create_staff(store)
        self.create_menu(store, options['stock'])
        self.create_customers(store)

        self.stdout.write(self.style.SUCCESS('Demo store created successfully!'))
        self.stdout.write('')
        self.stdout.write(f'Staff accounts (password: {DEMO_PASSWORD}):')
        for email, _, role in STAFF:
            self.stdout.write(f'  {email} ({role})')

    def clear_data(self):
        """Delete the demo store with everything that points at it."""
        store = Store.objects.filter(slug=DEMO_SLUG).first()
        if store is None:
            return

        AuditLog.objects.filter(store=store).delete()
        RefundVoid.objects.filter(order__store=store).delete()
        Order.objects.filter(store=store).delete()
        Shift.objects.filter(store=store).delete()
        User.objects.filter(email__in=[email for email, _, _ in STAFF]).delete()
        store.delete()

    def create_store(self):
        self.stdout.write('  Creating store and register...')

        store, _ = Store.objects.get_or_create(
            slug=DEMO_SLUG,
            defaults={
                'name': 'Demo Coffee',
                'address': 'Jl. Kemang Raya No.10, Jakarta',
                'tax_rate': Decimal('11'),
                'service_charge_rate': Decimal('5'),
                'rounding_unit': 100,
            }
        )
        Register.objects.get_or_create(
            store=store,
            code='REG-001',
            defaults={'name': 'Main Counter'}
        )
        return store

    def create_staff(self, store):
        self.stdout.write('  Creating staff...')

        for email, display_name, role in STAFF:
            user, _ = User.objects.get_or_create(
                email=email,
                defaults={
                    'display_name': display_name,
                    'role': role,
                    # Admins are not tied to a store
                    'default_store': None if role == Role.ADMIN else store,
                    'is_staff': role == Role.ADMIN,
                    'is_superuser': role == Role.ADMIN,
                }
            )
            user.set_password(DEMO_PASSWORD)
            user.save()

    def create_menu(self, store, stock):
        self.stdout.write('  Creating menu...')

        for name, sku, price in MENU:
            Product.objects.update_or_create(
                store=store,
                sku=sku,
                defaults={
                    'name': name,
                    'base_price': Decimal(price),
                    'stock': stock,
                    'is_available': True,
                }
            )

    def create_customers(self, store):
        self.stdout.write('  Creating customers...')

        for name, phone in [('Ayu', '+62 811-1111-111'), ('Budi', '+62 822-2222-222')]:
            Customer.objects.get_or_create(store=store, name=name, defaults={'phone': phone})
