"""Label-driven release version resolution and publishing."""
