"""Protocol libraries used by the ToF streaming sequence."""
