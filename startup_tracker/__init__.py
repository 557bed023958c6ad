"""AI Startup Tracker API."""
