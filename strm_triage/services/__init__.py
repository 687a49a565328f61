"""Invalid STRM record services: listing, statistics, transitions and CRUD."""
