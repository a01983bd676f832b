"""Pet-shop scheduling, pricing and appointment lifecycle backend."""

__version__ = "0.1.0"
