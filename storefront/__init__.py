"""Tenant-scoped catalog sync, cart/wishlist state and pricing for the storefront client."""
