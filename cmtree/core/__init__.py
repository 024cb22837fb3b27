"""Tree core: configuration, errors, storage and tree algorithms."""
