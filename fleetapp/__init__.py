"""Fleet management API: trips, vehicles, driver assignments and efficiency reporting."""
