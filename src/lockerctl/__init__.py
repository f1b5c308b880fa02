"""lockerctl — community parcel-locker management."""

__version__ = "0.1.0"
