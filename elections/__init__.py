"""Secret-ballot elections service."""
