"""
FastAPI routers grouped by resource (accounts, health).

Each module exposes an APIRouter that app.py includes; endpoint code only
parses requests, calls AccountService and shapes JSON responses.
"""
