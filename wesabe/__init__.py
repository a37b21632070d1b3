"""Client for the Wesabe API."""
