"""Backend de la boutique Pastel Poetics (FastAPI)."""

__version__ = "1.0.0"
