from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.products.models import Product


class Command(BaseCommand):
    help = "Seed the database with development users and a stocked catalog."

    def add_arguments(self, parser):
        parser.add_argument(
            "--scarce",
            action="store_true",
            help="Give every product a stock of 1 to exercise contention.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_products(scarce=options["scarce"])

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: users={users_created}, products={len(products)}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        for username in ("alice", "bob"):
            if not User.objects.filter(username=username).exists():
                User.objects.create_user(username, password=f"{username}123")
                created += 1
        return created

    def _seed_products(self, scarce: bool) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ELEC-001", "27in Monitor", "Electronics", Decimal("229.90")),
            ("ELEC-002", "Mechanical Keyboard", "Electronics", Decimal("89.90")),
            ("ELEC-003", "Wireless Mouse", "Electronics", Decimal("34.90")),
            ("ELEC-004", "USB-C Hub", "Electronics", Decimal("49.00")),
            ("ELEC-005", "Noise Cancelling Headphones", "Electronics", Decimal("199.00")),
            ("HOME-001", "Desk Lamp", "Home", Decimal("39.90")),
            ("HOME-002", "Ergonomic Chair", "Home", Decimal("349.00")),
            ("HOME-003", "Standing Desk", "Home", Decimal("499.00")),
            ("BOOK-001", "Designing Data-Intensive Applications", "Books", Decimal("44.99")),
            ("BOOK-002", "Fluent Python", "Books", Decimal("54.99")),
        ]
        for sku, name, category, price in catalog:
            stock = 1 if scarce else random.randint(5, 50)
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "description": category,
                    "price": price,
                    "stock_quantity": stock,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products
