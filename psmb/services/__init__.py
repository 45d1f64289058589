"""Services: dependency handling, manifest synthesis and release automation."""
