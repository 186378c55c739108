"""SearchMesh: concurrent multi-backend search merged into one formatted answer."""
