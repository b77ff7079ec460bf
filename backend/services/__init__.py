"""Business logic: page fetching, parsing, storage and the fetch scheduler."""
