"""Daily challenge engine: generation, assignment, progress tracking and reward claims."""
