"""Microservices hosted in this repository."""
