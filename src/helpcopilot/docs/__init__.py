"""Command help extraction and export."""
