"""moneycycle: personal budgeting backend built around pay cycles."""

__version__ = "0.1.0"
