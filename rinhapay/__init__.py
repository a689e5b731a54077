"""HTTP payment gateway with a queued worker pool and processor fallback."""

__version__ = "0.1.0"
__all__ = ["handlers", "payment", "processor", "server", "worker"]