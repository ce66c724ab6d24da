"""Application layer – index registry and listing use case."""
