"""
Menu Ops admin API.

Layered as models (ORM) -> repositories -> services (permissions and
domain rules) -> routers (thin FastAPI adapters).
"""
