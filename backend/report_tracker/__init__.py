"""Report Tracker - reporting compliance backend."""
