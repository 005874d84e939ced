"""ANTA ride-hailing REST API."""

APP_VERSION = "1.0.0"
