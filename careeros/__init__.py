"""CareerOS - turn a job post into a tailored application with a tool-calling model."""

__version__ = "0.1.0"
