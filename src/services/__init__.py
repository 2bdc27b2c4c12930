"""Similarity, hygiene, scoring, retrieval and maintenance services.

Services are imported lazily by handlers so AWS clients are only built when a
handler actually runs.
"""

# Do NOT import services here - use lazy loading in handlers instead
