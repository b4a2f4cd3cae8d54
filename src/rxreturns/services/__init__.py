"""Service layer: combines repositories with the pure engine and shapes API payloads."""
