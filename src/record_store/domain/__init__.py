"""Domain layer - records, datasets, comparison and the query pipeline."""
