"""Source-format adapters producing parsed datasets."""
