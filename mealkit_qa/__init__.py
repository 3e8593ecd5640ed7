"""End-to-end and API checks for the meal-kit storefront and the GoRest users API."""

__version__ = "1.0.0"
