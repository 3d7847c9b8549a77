"""Career story wizard."""
