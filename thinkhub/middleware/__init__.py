"""Request middleware: logging, timing, identity."""
