"""Storage adapters translating status queries into SQL."""
