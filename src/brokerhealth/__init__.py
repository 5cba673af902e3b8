"""Bound evaluation and health aggregation for RabbitMQ deployments."""

__version__ = "0.1.0"
