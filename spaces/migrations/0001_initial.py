from django.db import migrations, models
import django.db.models.deletion


def _space_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("description", models.TextField(blank=True, default="")),
        ("size", models.CharField(blank=True, default="", max_length=100)),
        ("max_tables", models.PositiveIntegerField(blank=True, null=True)),
        ("price_per_day", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
        ("price_per_week", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
        ("weekend_price_per_day", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
        ("is_active", models.BooleanField(default=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ShoppingCentre",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("centre_code", models.CharField(blank=True, max_length=50, null=True, unique=True)),
                ("address", models.TextField(blank=True, default="")),
                ("suburb", models.CharField(blank=True, default="", max_length=100)),
                ("city", models.CharField(blank=True, default="", max_length=100)),
                ("state", models.CharField(blank=True, choices=[("NSW", "New South Wales"), ("VIC", "Victoria"), ("QLD", "Queensland"), ("SA", "South Australia"), ("WA", "Western Australia"), ("TAS", "Tasmania"), ("NT", "Northern Territory"), ("ACT", "Australian Capital Territory")], default="", max_length=3)),
                ("postcode", models.CharField(blank=True, default="", max_length=10)),
                ("latitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("include_in_main_site", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "shopping_centres",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["state"], name="centre_state_idx")],
            },
        ),
        migrations.CreateModel(
            name="UsageCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("slug", models.SlugField(unique=True)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("is_free", models.BooleanField(default=False)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "usage_categories",
                "ordering": ["display_order", "name"],
                "verbose_name_plural": "Usage categories",
            },
        ),
        migrations.CreateModel(
            name="Site",
            fields=_space_fields() + [
                ("site_number", models.CharField(max_length=50)),
                ("all_categories_approved", models.BooleanField(default=False)),
                ("centre", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sites", to="spaces.shoppingcentre")),
                ("approved_categories", models.ManyToManyField(blank=True, db_table="site_usage_categories", related_name="sites", to="spaces.usagecategory")),
            ],
            options={
                "db_table": "sites",
                "ordering": ["centre", "site_number"],
            },
        ),
        migrations.CreateModel(
            name="VacantShop",
            fields=_space_fields() + [
                ("shop_number", models.CharField(max_length=50)),
                ("centre", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="vacant_shops", to="spaces.shoppingcentre")),
            ],
            options={
                "db_table": "vacant_shops",
                "ordering": ["centre", "shop_number"],
            },
        ),
        migrations.CreateModel(
            name="ThirdLineAsset",
            fields=_space_fields() + [
                ("asset_number", models.CharField(max_length=50)),
                ("category_name", models.CharField(blank=True, default="", max_length=100)),
                ("centre", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="third_line_assets", to="spaces.shoppingcentre")),
            ],
            options={
                "db_table": "third_line_assets",
                "ordering": ["centre", "asset_number"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_number", models.CharField(max_length=50, unique=True)),
                ("space_id", models.CharField(db_index=True, max_length=30)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled"), ("completed", "Completed"), ("rejected", "Rejected")], db_index=True, default="pending", max_length=20)),
                ("customer_email", models.EmailField(blank=True, default="", max_length=254)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "bookings",
                "ordering": ["start_date"],
                "indexes": [models.Index(fields=["space_id", "start_date", "end_date"], name="space_date_range_idx")],
            },
        ),
        migrations.CreateModel(
            name="SearchLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("query", models.CharField(max_length=255)),
                ("parsed_centre_name", models.CharField(blank=True, default="", max_length=255)),
                ("min_size_m2", models.FloatField(blank=True, null=True)),
                ("product_category", models.CharField(blank=True, default="", max_length=50)),
                ("results_count", models.PositiveIntegerField(default=0)),
                ("suggestions_shown", models.PositiveIntegerField(default=0)),
                ("search_date", models.DateField()),
                ("parser_used", models.CharField(default="rules", max_length=10)),
                ("top_result_score", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("parsed_intent", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "search_logs",
                "ordering": ["-created_at"],
            },
        ),
    ]
