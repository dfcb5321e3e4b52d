from django.db import models


STATE_CHOICES = [
    ("NSW", "New South Wales"),
    ("VIC", "Victoria"),
    ("QLD", "Queensland"),
    ("SA", "South Australia"),
    ("WA", "Western Australia"),
    ("TAS", "Tasmania"),
    ("NT", "Northern Territory"),
    ("ACT", "Australian Capital Territory"),
]


# ============================================================
# Centres & Categories
# ============================================================

class ShoppingCentre(models.Model):
    """A shopping centre that offers casual leasing, vacant shops and third-line assets."""

    name = models.CharField(max_length=255, db_index=True)
    centre_code = models.CharField(max_length=50, unique=True, null=True, blank=True)
    address = models.TextField(blank=True, default="")
    suburb = models.CharField(max_length=100, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=3, choices=STATE_CHOICES, blank=True, default="")
    postcode = models.CharField(max_length=10, blank=True, default="")
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    include_in_main_site = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "shopping_centres"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["state"], name="centre_state_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.state})" if self.state else self.name


class UsageCategory(models.Model):
    """
    A product category a space may be approved for.
    ``slug`` matches the canonical ids used by the search vocabulary.
    """

    slug = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=255, unique=True)
    is_free = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "usage_categories"
        ordering = ["display_order", "name"]
        verbose_name_plural = "Usage categories"

    def __str__(self):
        return self.name


# ============================================================
# Bookable spaces
# ============================================================

class BookableSpace(models.Model):
    """Attributes shared by every kind of bookable space."""

    description = models.TextField(blank=True, default="")
    # Free text as entered by centre managers, e.g. "3m x 4m" or "12 sqm"
    size = models.CharField(max_length=100, blank=True, default="")
    max_tables = models.PositiveIntegerField(null=True, blank=True)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_per_week = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    weekend_price_per_day = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Site(BookableSpace):
    """Casual leasing site inside a centre's common area."""

    centre = models.ForeignKey(ShoppingCentre, on_delete=models.CASCADE, related_name="sites")
    site_number = models.CharField(max_length=50)
    # Empty approvals are treated the same as all_categories_approved
    all_categories_approved = models.BooleanField(default=False)
    approved_categories = models.ManyToManyField(
        UsageCategory, blank=True, related_name="sites", db_table="site_usage_categories"
    )

    class Meta:
        db_table = "sites"
        ordering = ["centre", "site_number"]

    def __str__(self):
        return f"Site {self.site_number} @ {self.centre.name}"


class VacantShop(BookableSpace):
    """Vacant tenancy offered for short-term lease."""

    centre = models.ForeignKey(ShoppingCentre, on_delete=models.CASCADE, related_name="vacant_shops")
    shop_number = models.CharField(max_length=50)

    class Meta:
        db_table = "vacant_shops"
        ordering = ["centre", "shop_number"]

    def __str__(self):
        return f"Shop {self.shop_number} @ {self.centre.name}"


class ThirdLineAsset(BookableSpace):
    """Advertising or promotional asset (digital screens, banners, floor decals)."""

    centre = models.ForeignKey(ShoppingCentre, on_delete=models.CASCADE, related_name="third_line_assets")
    asset_number = models.CharField(max_length=50)
    category_name = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        db_table = "third_line_assets"
        ordering = ["centre", "asset_number"]

    def __str__(self):
        return f"{self.category_name or 'Asset'} {self.asset_number} @ {self.centre.name}"


# ============================================================
# Bookings
# ============================================================

class Booking(models.Model):
    """
    A booking of any space kind. ``space_id`` is the engine identifier
    (``site-12``, ``shop-3``, ``asset-7``) so one table covers every kind.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("confirmed", "Confirmed"),
        ("cancelled", "Cancelled"),
        ("completed", "Completed"),
        ("rejected", "Rejected"),
    ]

    booking_number = models.CharField(max_length=50, unique=True)
    space_id = models.CharField(max_length=30, db_index=True)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending", db_index=True)
    customer_email = models.EmailField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "bookings"
        ordering = ["start_date"]
        indexes = [
            models.Index(fields=["space_id", "start_date", "end_date"], name="space_date_range_idx"),
        ]

    def __str__(self):
        return f"{self.booking_number} {self.space_id} {self.start_date}→{self.end_date}"


# ============================================================
# Search analytics
# ============================================================

class SearchLog(models.Model):
    """One row per search, written by the ``log_search`` task."""

    query = models.CharField(max_length=255)
    parsed_centre_name = models.CharField(max_length=255, blank=True, default="")
    min_size_m2 = models.FloatField(null=True, blank=True)
    product_category = models.CharField(max_length=50, blank=True, default="")
    results_count = models.PositiveIntegerField(default=0)
    suggestions_shown = models.PositiveIntegerField(default=0)
    search_date = models.DateField()
    parser_used = models.CharField(max_length=10, default="rules")
    top_result_score = models.PositiveSmallIntegerField(null=True, blank=True)
    parsed_intent = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "search_logs"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.query!r} → {self.results_count}"
