"""Print club notification relay."""
