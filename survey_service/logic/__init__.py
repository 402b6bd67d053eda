"""Domain logic: catalog, store repositories, flow control and statistics."""
