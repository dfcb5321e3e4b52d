"""
Seed the usage categories the search vocabulary recognises.
"""

from django.db import migrations


INITIAL_CATEGORIES = [
    {"slug": "fashion", "name": "Fashion", "is_free": False},
    {"slug": "footwear", "name": "Footwear", "is_free": False},
    {"slug": "food", "name": "Food", "is_free": False},
    {"slug": "coffee", "name": "Coffee", "is_free": False},
    {"slug": "electronics", "name": "Electronics", "is_free": False},
    {"slug": "beauty", "name": "Beauty", "is_free": False},
    {"slug": "pets", "name": "Pets", "is_free": False},
    {"slug": "jewellery", "name": "Jewellery", "is_free": False},
    {"slug": "books", "name": "Books", "is_free": False},
    {"slug": "toys", "name": "Toys", "is_free": False},
    {"slug": "sports", "name": "Sports", "is_free": False},
    {"slug": "homewares", "name": "Homewares", "is_free": False},
    {"slug": "garden", "name": "Garden", "is_free": False},
    {"slug": "health", "name": "Health", "is_free": False},
    {"slug": "art", "name": "Art", "is_free": False},
    {"slug": "services", "name": "Services", "is_free": False},

    # Free of charge
    {"slug": "charity", "name": "Charity", "is_free": True},
    {"slug": "government", "name": "Government", "is_free": True},
    {"slug": "community", "name": "Community", "is_free": True},
]


def seed_categories(apps, schema_editor):
    UsageCategory = apps.get_model("spaces", "UsageCategory")
    for order, data in enumerate(INITIAL_CATEGORIES, start=1):
        UsageCategory.objects.get_or_create(
            slug=data["slug"],
            defaults={**data, "display_order": order},
        )


def remove_categories(apps, schema_editor):
    UsageCategory = apps.get_model("spaces", "UsageCategory")
    slugs = [c["slug"] for c in INITIAL_CATEGORIES]
    UsageCategory.objects.filter(slug__in=slugs).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("spaces", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_categories, remove_categories),
    ]
