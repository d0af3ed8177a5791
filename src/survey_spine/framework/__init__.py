"""Framework services shared by the compute layer (structured logging)."""
