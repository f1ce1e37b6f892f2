"""Monitor CPU, memory, drive and network resources on Linux from procfs and sysfs."""

__version__ = "0.1.0"