"""PLP Mentor notification service."""
