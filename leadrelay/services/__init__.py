"""Lead intake services: adapters, location resolution, normalization, delivery."""
