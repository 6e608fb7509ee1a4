from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.constants import PaymentMethod
from modules.orders.dtos import AddressDTO, CreateOrderDTO, CreateOrderItemDTO, CustomerDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductCategory, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

SEED_PRODUCTS = [
    ("Custom Name Hoop", ProductCategory.HOOP_ART, "450.00", True),
    ("Floral Embroidery Hoop", ProductCategory.HOOP_ART, "650.00", True),
    ("Personalised Handkerchief", ProductCategory.EMBROIDERY, "300.00", True),
    ("Embroidered Tote Bag", ProductCategory.EMBROIDERY, "799.00", True),
    ("Crochet Sunflower Keychain", ProductCategory.CROCHET, "150.00", False),
    ("Crochet Amigurumi Bunny", ProductCategory.CROCHET, "550.00", True),
    ("Wedding Gift Hamper", ProductCategory.GIFT_HAMPER, "1499.00", True),
    ("Retired Bookmark Set", ProductCategory.OTHER, "120.00", False),
]

SEED_CUSTOMERS = [
    ("Aarav Sharma", "9876500001", "Jaipur", "Rajasthan", "302001"),
    ("Diya Patel", "9876500002", "Ahmedabad", "Gujarat", "380001"),
    ("Kabir Nair", "9876500003", "Kochi", "Kerala", "682001"),
]


class Command(BaseCommand):
    help = "Seed database with handcrafted catalog data and a staff user."

    def add_arguments(self, parser):
        parser.add_argument(
            "--with-orders",
            action="store_true",
            help="Also place a few cash-on-delivery sample orders.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(products) if options["with_orders"] else 0

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        if User.objects.filter(username="staff").exists():
            return 0
        User.objects.create_user("staff", password="staff123", is_staff=True)
        return 1

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for name, category, price, active in SEED_PRODUCTS:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "category": category,
                    "base_price": Decimal(price),
                    "is_customizable": category != ProductCategory.GIFT_HAMPER,
                    "status": ProductStatus.ACTIVE if active else ProductStatus.INACTIVE,
                },
            )
            products.append(product)
        return products

    def _seed_orders(self, products: list[Product]) -> int:
        self.stdout.write("Placing sample orders...")
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )
        active = [product for product in products if product.is_active]
        for name, phone, city, state, postal_code in SEED_CUSTOMERS:
            picks = random.sample(active, k=random.randint(1, 3))
            service.create_order(
                CreateOrderDTO(
                    customer=CustomerDTO(
                        name=name,
                        phone=phone,
                        whatsapp=phone,
                        address=AddressDTO(
                            street="12 MG Road",
                            city=city,
                            state=state,
                            postal_code=postal_code,
                        ),
                    ),
                    items=[
                        CreateOrderItemDTO(
                            product_id=product.id, quantity=random.randint(1, 2)
                        )
                        for product in picks
                    ],
                    payment_method=PaymentMethod.CASH_ON_DELIVERY,
                    gift_wrap=random.choice([True, False]),
                )
            )
        return len(SEED_CUSTOMERS)
