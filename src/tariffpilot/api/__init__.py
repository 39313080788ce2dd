"""
TariffPilot HTTP API.

Run with:
    uvicorn tariffpilot.api.main:app
"""
