"""Section and row grouping of template fields."""
