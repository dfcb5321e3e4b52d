from django.contrib import admin
from .models import Booking, SearchLog, ShoppingCentre, Site, ThirdLineAsset, UsageCategory, VacantShop


@admin.register(ShoppingCentre)
class ShoppingCentreAdmin(admin.ModelAdmin):
    list_display = ["name", "suburb", "city", "state", "include_in_main_site"]
    list_filter = ["state", "include_in_main_site"]
    search_fields = ["name", "suburb", "city", "centre_code"]


@admin.register(UsageCategory)
class UsageCategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "is_free", "display_order", "is_active"]
    list_filter = ["is_free", "is_active"]
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ["site_number", "centre", "size", "max_tables", "price_per_day", "all_categories_approved", "is_active"]
    list_filter = ["is_active", "all_categories_approved", "centre__state"]
    search_fields = ["site_number", "description", "centre__name"]
    filter_horizontal = ["approved_categories"]
    raw_id_fields = ["centre"]


@admin.register(VacantShop)
class VacantShopAdmin(admin.ModelAdmin):
    list_display = ["shop_number", "centre", "size", "price_per_week", "is_active"]
    list_filter = ["is_active", "centre__state"]
    search_fields = ["shop_number", "description", "centre__name"]
    raw_id_fields = ["centre"]


@admin.register(ThirdLineAsset)
class ThirdLineAssetAdmin(admin.ModelAdmin):
    list_display = ["asset_number", "category_name", "centre", "price_per_week", "is_active"]
    list_filter = ["is_active", "category_name"]
    search_fields = ["asset_number", "category_name", "centre__name"]
    raw_id_fields = ["centre"]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["booking_number", "space_id", "start_date", "end_date", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["booking_number", "space_id", "customer_email"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(SearchLog)
class SearchLogAdmin(admin.ModelAdmin):
    list_display = ["query", "results_count", "suggestions_shown", "parser_used", "top_result_score", "created_at"]
    list_filter = ["parser_used", "search_date"]
    search_fields = ["query", "parsed_centre_name"]
    readonly_fields = ["created_at"]
