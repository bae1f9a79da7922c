"""Desktop entry points for running the organizer locally."""
