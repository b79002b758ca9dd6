"""Version 1 of the School Directory API."""
