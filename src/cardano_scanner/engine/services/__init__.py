"""Engine services — business logic behind the admin API."""
