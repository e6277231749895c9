"""Ground-truth indexes built from on-disk project artifacts."""
