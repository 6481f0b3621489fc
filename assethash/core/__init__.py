"""Core hashing pipeline: checksums, scanning, resolution, rewriting, ordering."""
